"""Tests for CSV / HTML / Excel export."""
import json
import re

import pandas as pd
import pytest

from snapshot.models import AggregatedRow, CreditStatus
from utils.exporters import BOM, ReportExporter, display_value, json_cell

CELL = re.compile(r'"(?:[^"\\]|\\.)*"|[^,]+')


def parse_csv(text):
    assert text.startswith(BOM)
    header, *body = text[len(BOM):].split("\n")
    return header.split(","), [[json.loads(cell) for cell in CELL.findall(line)] for line in body]


class TestJsonCell:
    @pytest.mark.parametrize("value,expected", [
        (None, '""'),
        (1000.0, "1000"),
        (300.5, "300.5"),
        (7, "7"),
        (True, "true"),
        (float("nan"), "null"),
        ("أحمد", '"أحمد"'),
        ('say "hi"', '"say \\"hi\\""'),
        (CreditStatus.DANGER, '"danger"'),
    ])
    def test_cells(self, value, expected):
        assert json_cell(value) == expected


class TestToCsv:
    def test_layout(self):
        rows = [{"name": "أحمد", "sales": 1000.0, "collected": 300.5, "note": None}]
        text = ReportExporter.to_csv(rows, ["name", "sales", "collected", "note"])
        assert text == BOM + 'name,sales,collected,note\n"أحمد",1000,300.5,""'
        assert not text.endswith("\n")

    def test_empty_rows(self):
        assert ReportExporter.to_csv([], ["a", "b"]) == BOM + "a,b"

    def test_awkward_text_survives(self):
        rows = [
            {"name": 'Sara, "Top" Rep', "sales": 250.0},
            {"name": "line\nbreak, عيادة", "sales": 0.1},
        ]
        header, body = parse_csv(ReportExporter.to_csv(rows, ["name", "sales"]))
        assert header == ["name", "sales"]
        assert body == [['Sara, "Top" Rep', 250], ["line\nbreak, عيادة", 0.1]]

    def test_custom_headers(self):
        text = ReportExporter.to_csv([{"product": "A"}], ["product"], headers=["Product"])
        assert text.startswith(BOM + "Product\n")
        with pytest.raises(ValueError):
            ReportExporter.to_csv([], ["a", "b"], headers=["A"])

    def test_dataclass_rows(self):
        rows = [AggregatedRow(visits=2, invoice_count=1, sales=600.0, collected=300.0, current_debt=300.0)]
        _, body = parse_csv(ReportExporter.to_csv(rows, ["visits", "sales", "current_debt"]))
        assert body == [[2, 600, 300]]


class TestPrintableHtml:
    rows = [{"name": "<b>Rep</b>", "sales": 1234.5, "visits": 1000.0}]

    def test_rtl_page(self):
        page = ReportExporter.to_printable_html("Report", self.rows, ["name", "sales", "visits"],
                                                headers=["الاسم", "المبيعات", "الزيارات"])
        assert page.startswith('<html lang="ar" dir="rtl">')
        assert "<title>Report</title>" in page
        assert "<th>المبيعات</th>" in page
        assert "&lt;b&gt;Rep&lt;/b&gt;" in page
        assert "<td>1,234.50</td>" in page
        assert "<td>1,000</td>" in page
        assert "window.print()" in page

    def test_without_auto_print(self):
        page = ReportExporter.to_printable_html("Report", [], ["name"], auto_print=False)
        assert "window.print()" not in page

    def test_display_value(self):
        assert display_value(None) == ""
        assert display_value(CreditStatus.GOOD) == "good"


class TestWorkbook:
    def test_sheets(self):
        rows = [{"name": "A", "sales": 10.0}, {"name": "B", "sales": 20.5}]
        output = ReportExporter.export_workbook({
            "Reps": (rows, ["name", "sales"], ["الاسم", "المبيعات"]),
            "Single": (rows, ["name"], None),
        })
        sheets = pd.read_excel(output, sheet_name=None, header=1)
        assert set(sheets) == {"Reps", "Single"}
        assert list(sheets["Reps"].columns) == ["الاسم", "المبيعات"]
        assert sheets["Reps"]["المبيعات"].tolist() == [10.0, 20.5]
        assert list(sheets["Single"].columns) == ["name"]
