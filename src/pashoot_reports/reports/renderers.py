"""HTML renderers for report data."""

from __future__ import annotations

import json
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from html import escape
from typing import Any

from pashoot_reports.models import utc_now
from pashoot_reports.reports.types import ReportData

_STYLE = """
    body { font-family: Arial, sans-serif; padding: 40px; max-width: 900px; margin: 0 auto; }
    h1 { color: #1f2937; border-bottom: 2px solid #3b82f6; padding-bottom: 10px; }
    h2 { color: #374151; margin-top: 30px; }
    .header { margin-bottom: 30px; }
    .period { color: #6b7280; }
    pre { background: #f9fafb; padding: 20px; border-radius: 8px; overflow-x: auto; }
    table { width: 100%; border-collapse: collapse; margin-top: 10px; }
    td { padding: 6px 8px; border-bottom: 1px solid #e5e7eb; }
    td.amount { text-align: right; font-variant-numeric: tabular-nums; }
    tr.total td { font-weight: bold; border-top: 2px solid #374151; }
    .negative { color: #b91c1c; }
    .footer { margin-top: 40px; padding-top: 20px; border-top: 1px solid #e5e7eb;
              color: #6b7280; font-size: 0.9em; }
"""


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime | date):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def to_json(data: ReportData, indent: int | None = 2) -> str:
    """Serialize report data; money stays exact as a decimal string."""
    return json.dumps(data, indent=indent, default=_json_default)


def _page(title: str, data: ReportData, body: str) -> str:
    period = f"Period: {data.get('start_date', '')} - {data.get('end_date', '')}"
    generated = utc_now().strftime("%Y-%m-%d %H:%M UTC")
    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>{escape(title)}</title>
  <style>{_STYLE}</style>
</head>
<body>
  <div class="header">
    <h1>{escape(title)}</h1>
    <p class="period">{escape(period)}</p>
  </div>
{body}
  <div class="footer">
    <p>Generated by Pashoot Reports on {generated}</p>
  </div>
</body>
</html>
"""


def render_generic_report(data: ReportData) -> str:
    """Any report as escaped, indented JSON inside the standard page."""
    title = str(data.get("report_type", "Report"))
    body = f"""  <h2>Report Data</h2>
  <pre>{escape(to_json(data))}</pre>"""
    return _page(title, data, body)


def _amount(value: Decimal) -> str:
    css = "amount negative" if value < 0 else "amount"
    return f'<td class="{css}">{value:,.2f}</td>'


def _section(heading: str, rows: list[dict[str, Any]], total: Decimal, total_label: str) -> str:
    lines = [f"  <h2>{escape(heading)}</h2>", "  <table>"]
    for row in rows:
        lines.append(f"    <tr><td>{escape(str(row['category']))}</td>{_amount(row['amount'])}</tr>")
    lines.append(f'    <tr class="total"><td>{escape(total_label)}</td>{_amount(total)}</tr>')
    lines.append("  </table>")
    return "\n".join(lines)


def render_income_statement(data: ReportData) -> str:
    """P&L as revenue and expense tables followed by net income and margin."""
    revenue = data["revenue"]
    expenses = data["expenses"]
    body = "\n".join(
        [
            _section("Revenue", revenue["categories"], revenue["total"], "Total Revenue"),
            _section("Expenses", expenses["categories"], expenses["total"], "Total Expenses"),
            "  <h2>Summary</h2>",
            "  <table>",
            f'    <tr class="total"><td>Net Income</td>{_amount(data["net_income"])}</tr>',
            f'    <tr><td>Profit Margin</td><td class="amount">{data["profit_margin"]:.2f}%</td></tr>',
            "  </table>",
        ]
    )
    return _page(str(data["report_type"]), data, body)
