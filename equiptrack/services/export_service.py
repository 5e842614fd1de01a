import io

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from equiptrack.schemas.inventory import EventReport, ItemCondition

_CONDITION_LABELS = {
    ItemCondition.ok: "V pořádku",
    ItemCondition.needs_maintenance: "Vyžaduje údržbu",
    ItemCondition.broken: "Nefunkční",
}


def export_event_excel(report: EventReport, location_name: str | None = None) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "Inventura"

    header_fill = PatternFill(start_color="1C2D42", end_color="1C2D42", fill_type="solid")
    header_font = Font(bold=True, color="F5A623", size=11)
    problem_fill = PatternFill(start_color="FDE2E1", end_color="FDE2E1", fill_type="solid")

    # Summary block
    ws.cell(row=1, column=1, value=f"Inventura #{report.event_id}").font = Font(bold=True, size=13)
    ws.cell(row=2, column=1, value="Lokace")
    ws.cell(row=2, column=2, value=location_name or f"#{report.location_id}")
    ws.cell(row=3, column=1, value="Datum")
    ws.cell(row=3, column=2, value=report.event_date.strftime("%d.%m.%Y"))
    ws.cell(row=4, column=1, value="Nalezeno")
    ws.cell(row=4, column=2, value=report.tally.found_count)
    ws.cell(row=5, column=1, value="Nenalezeno")
    ws.cell(row=5, column=2, value=report.tally.missing_count)
    ws.cell(row=6, column=1, value="Problémy")
    ws.cell(row=6, column=2, value=report.tally.problem_count)

    header_row = 8
    headers = ["ID záznamu", "ID zařízení", "S/N", "Nalezeno", "Stav", "Mimo lokaci", "Poznámka"]
    for col, h in enumerate(headers, 1):
        cell = ws.cell(row=header_row, column=col, value=h)
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = Alignment(horizontal="center")

    for row_num, row in enumerate(report.rows, header_row + 1):
        ws.cell(row=row_num, column=1, value=row.item_id)
        ws.cell(row=row_num, column=2, value=row.device_id)
        ws.cell(row=row_num, column=3, value=row.serial_number)
        ws.cell(row=row_num, column=4, value="Ano" if row.found else "Ne")
        ws.cell(row=row_num, column=5, value=_CONDITION_LABELS.get(row.condition, row.condition.value))
        ws.cell(row=row_num, column=6, value="Ano" if row.misplaced else "")
        ws.cell(row=row_num, column=7, value=row.comments or "")
        if not row.found or row.condition is not ItemCondition.ok:
            for col in range(1, len(headers) + 1):
                ws.cell(row=row_num, column=col).fill = problem_fill

    col_widths = [12, 12, 24, 10, 18, 12, 40]
    for i, w in enumerate(col_widths, 1):
        ws.column_dimensions[get_column_letter(i)].width = w
    ws.freeze_panes = ws.cell(row=header_row + 1, column=1)

    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()
