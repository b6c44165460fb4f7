# ============================================================
#  Project  : Sales Ledger & Credit Risk Engine
#             محرك حسابات المندوبين والعيادات والمخاطر الائتمانية
#  Module   : generate_report.py - Batch Report Writer
# ============================================================
import argparse
import logging
import os
from datetime import datetime

import config
from processors import LedgerError, ReportBuilder, merge_leaderboards, resolve_period
from snapshot.store import Snapshot
from utils.exporters import ReportExporter

logger = logging.getLogger("generate_report")


def generate_reports(snapshot, period='all', custom_range=None, output_dir=None, now=None):
    """
    كتابة تقارير الفترة إلى مجلد التقارير

    Returns:
        (قائمة الملفات المكتوبة، الإحصائيات الملخصة)
    """
    output_dir = output_dir or config.OUTPUT_DIR
    os.makedirs(output_dir, exist_ok=True)

    date_range = resolve_period(period, custom_range, now=now)
    builder = ReportBuilder(snapshot, date_range)

    roster = builder.representative_roster()
    clinics = builder.clinic_ledger()
    top = merge_leaderboards(builder.top_products())
    summary = ReportBuilder.summarize(roster)

    stamp = (now or datetime.now()).strftime("%Y%m%d_%H%M")
    base = os.path.join(output_dir, f"{period}_{stamp}")
    written = []

    path = f"{base}_reps.csv"
    with open(path, 'w', encoding='utf-8', newline='') as fh:
        fh.write(ReportExporter.to_csv(roster, ReportBuilder.ROSTER_COLUMNS))
    written.append(path)

    path = f"{base}_reps.html"
    with open(path, 'w', encoding='utf-8') as fh:
        fh.write(ReportExporter.to_printable_html(
            "All Reps Metrics", roster, ReportBuilder.ROSTER_COLUMNS,
            headers=ReportBuilder.ROSTER_HEADERS_AR, heading="ملخص أداء المندوبين",
            auto_print=False,
        ))
    written.append(path)

    path = f"{base}_clinics.csv"
    with open(path, 'w', encoding='utf-8', newline='') as fh:
        fh.write(ReportExporter.to_csv(clinics, ReportBuilder.CLINIC_COLUMNS))
    written.append(path)

    path = f"{base}.xlsx"
    workbook = ReportExporter.export_workbook({
        'المندوبين': (roster, ReportBuilder.ROSTER_COLUMNS, ReportBuilder.ROSTER_HEADERS_AR),
        'العيادات': (clinics, ReportBuilder.CLINIC_COLUMNS, ReportBuilder.CLINIC_HEADERS_AR),
        'أفضل المنتجات': (top, ReportBuilder.TOP_PRODUCTS_COLUMNS, ReportBuilder.TOP_PRODUCTS_HEADERS_AR),
    })
    with open(path, 'wb') as fh:
        fh.write(workbook.getvalue())
    written.append(path)

    logger.info("Wrote %d report file(s) to %s", len(written), output_dir)
    return written, summary


def main(argv=None):
    parser = argparse.ArgumentParser(description="Generate representative / clinic reports from a snapshot")
    parser.add_argument("snapshot", help="snapshot JSON file (orders, collections, visits, clinics, users)")
    parser.add_argument("--period", default="all",
                        help="all | this_month | last_month | last_3_months | ytd | custom")
    parser.add_argument("--from", dest="date_from", help="custom period start (YYYY-MM-DD)")
    parser.add_argument("--to", dest="date_to", help="custom period end (YYYY-MM-DD)")
    parser.add_argument("--output-dir", default=config.OUTPUT_DIR)
    args = parser.parse_args(argv)

    logging.basicConfig(level=config.LOG_LEVEL, format=config.LOG_FORMAT)

    try:
        snapshot = Snapshot.from_json_file(args.snapshot)
        written, summary = generate_reports(
            snapshot, args.period, {'from': args.date_from, 'to': args.date_to}, args.output_dir
        )
    except (LedgerError, OSError, ValueError) as e:
        logger.error("Report generation failed: %s", e)
        return 1

    print(f"✅ Reports generated ({args.period})")
    print(f"   Sales: {summary['total_sales']:,.2f} | Collected: {summary['total_collected']:,.2f}"
          f" | Debt: {summary['total_debt']:,.2f} | Collection rate: {summary['collection_rate']}%")
    for path in written:
        print(f"   - {path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
