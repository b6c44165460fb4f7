"""
مصدّر التقارير - Report Exporter
يقوم بتصدير صفوف التقارير إلى CSV و HTML للطباعة وملفات Excel منسقة
"""

import html
import json
import math
from datetime import date, datetime
from enum import Enum
from io import BytesIO
from typing import Dict, Optional, Sequence, Tuple

import pandas as pd

BOM = "\ufeff"

PRINT_STYLE = """
      <style>
        body { font-family: system-ui, -apple-system, Segoe UI, Roboto, Arial; padding: 24px; color: #111; }
        h1 { font-size: 20px; margin: 0 0 10px; }
        table { width: 100%; border-collapse: collapse; }
        th, td { border: 1px solid #e5e7eb; padding: 6px 8px; font-size: 12px; text-align: start; }
        th { background: #f8fafc; }
      </style>
    """


def _row_dict(row) -> Dict:
    if isinstance(row, dict):
        return row
    if hasattr(row, 'as_dict'):
        return row.as_dict()
    raise TypeError(f"row must be a dict or expose as_dict(), got {type(row).__name__}")


def _plain(value):
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def json_cell(value) -> str:
    """
    ترميز خلية CSV بنفس قواعد JSON.stringify

    None -> "" ; integral floats without ".0" ; NaN/inf -> null ;
    non-ASCII text kept as is.
    """
    value = _plain(value)
    if value is None:
        return '""'
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float):
        if not math.isfinite(value):
            return 'null'
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, int):
        return str(value)
    return json.dumps(str(value), ensure_ascii=False)


def display_value(value) -> str:
    """تنسيق القيمة للعرض (فواصل الآلاف للأرقام)"""
    value = _plain(value)
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'نعم' if value else 'لا'
    if isinstance(value, float):
        if not math.isfinite(value):
            return ''
        if value.is_integer():
            return f"{int(value):,}"
        return f"{value:,.2f}"
    if isinstance(value, int):
        return f"{value:,}"
    return str(value)


class ReportExporter:
    """مصدّر التقارير"""

    @staticmethod
    def to_csv(rows: Sequence, columns: Sequence[str], headers: Optional[Sequence[str]] = None) -> str:
        """
        تصدير الصفوف إلى CSV

        BOM + header row + one line per row, no trailing newline. Header
        labels are written as given; every data cell is JSON-encoded.

        Args:
            rows: قائمة الصفوف (dict أو كائن يوفّر as_dict)
            columns: ترتيب الأعمدة
            headers: عناوين الأعمدة (الافتراضي: أسماء الأعمدة)

        Returns:
            نص CSV
        """
        columns = list(columns)
        headers = list(headers) if headers is not None else columns
        if len(headers) != len(columns):
            raise ValueError("headers and columns must have the same length")

        lines = [','.join(headers)]
        for row in rows:
            data = _row_dict(row)
            lines.append(','.join(json_cell(data.get(col)) for col in columns))
        return BOM + '\n'.join(lines)

    @staticmethod
    def to_printable_html(
        title: str,
        rows: Sequence,
        columns: Sequence[str],
        headers: Optional[Sequence[str]] = None,
        heading: Optional[str] = None,
        auto_print: bool = True
    ) -> str:
        """
        تصدير الصفوف إلى صفحة HTML جاهزة للطباعة (من اليمين لليسار)

        Args:
            title: عنوان الصفحة
            rows: قائمة الصفوف
            columns: ترتيب الأعمدة
            headers: عناوين الأعمدة
            heading: العنوان الظاهر أعلى الجدول (الافتراضي: title)
            auto_print: فتح نافذة الطباعة تلقائياً

        Returns:
            نص HTML
        """
        columns = list(columns)
        headers = list(headers) if headers is not None else columns

        head_cells = ''.join(f"<th>{html.escape(str(h))}</th>" for h in headers)
        body_rows = []
        for row in rows:
            data = _row_dict(row)
            cells = ''.join(f"<td>{html.escape(display_value(data.get(col)))}</td>" for col in columns)
            body_rows.append(f"<tr>{cells}</tr>")

        script = "<script>window.print();</script>" if auto_print else ""
        return (
            '<html lang="ar" dir="rtl">'
            f'<head><meta charset="utf-8">{PRINT_STYLE}<title>{html.escape(title)}</title></head>'
            '<body>'
            f'<h1>{html.escape(heading if heading is not None else title)}</h1>'
            f'<table><thead><tr>{head_cells}</tr></thead><tbody>{"".join(body_rows)}</tbody></table>'
            f'{script}'
            '</body></html>'
        )

    @staticmethod
    def export_workbook(sheets: Dict[str, Tuple[Sequence, Sequence[str], Optional[Sequence[str]]]]) -> BytesIO:
        """
        تصدير عدة جداول إلى ملف Excel (صفحة لكل جدول)

        Args:
            sheets: {اسم الصفحة: (الصفوف، الأعمدة، العناوين)}

        Returns:
            BytesIO يحتوي على ملف Excel
        """
        output = BytesIO()

        with pd.ExcelWriter(output, engine='xlsxwriter') as writer:
            workbook = writer.book

            # تنسيقات Excel
            header_format = workbook.add_format({
                'bold': True,
                'bg_color': '#4472C4',
                'font_color': 'white',
                'border': 1,
                'align': 'center',
                'valign': 'vcenter'
            })

            title_format = workbook.add_format({
                'bold': True,
                'font_size': 16,
                'bg_color': '#2E75B6',
                'font_color': 'white',
                'align': 'center',
                'valign': 'vcenter'
            })

            for sheet_name, (rows, columns, headers) in sheets.items():
                columns = list(columns)
                headers = list(headers) if headers is not None else columns
                sheet_name = sheet_name[:31]

                records = [{col: _plain(_row_dict(row).get(col)) for col in columns} for row in rows]
                export_df = pd.DataFrame(records, columns=columns)
                export_df.columns = headers
                export_df.to_excel(writer, sheet_name=sheet_name, index=False, startrow=1)

                sheet = writer.sheets[sheet_name]
                sheet.right_to_left()

                # العنوان
                if len(headers) > 1:
                    sheet.merge_range(0, 0, 0, len(headers) - 1, sheet_name, title_format)
                else:
                    sheet.write(0, 0, sheet_name, title_format)

                # تنسيق الرأس
                for col_num, value in enumerate(headers):
                    sheet.write(1, col_num, value, header_format)

                sheet.set_column(0, max(len(headers) - 1, 0), 18)

        output.seek(0)
        return output
