# coupons/reports.py
from datetime import datetime

from django.http import HttpResponse
from django.utils import timezone
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side

HEADERS = ["Coupon", "Customer", "Booking", "Category", "Original", "Discount", "Final", "Used At"]


def build_usage_workbook(usages):
    """Excel sheet with one row per coupon redemption."""
    wb = Workbook()
    ws = wb.active
    ws.title = "Coupon Usage"

    # ---------------------------
    # HEADERS
    # ---------------------------
    ws.append(HEADERS)

    header_fill = PatternFill(start_color="366092", end_color="366092", fill_type="solid")
    header_font = Font(bold=True, color="FFFFFF", size=11)

    for cell in ws[1]:
        cell.fill = header_fill
        cell.font = header_font
        cell.alignment = Alignment(horizontal="center", vertical="center")

    # ---------------------------
    # DATA ROWS
    # ---------------------------
    for usage in usages:
        ws.append([
            usage.coupon.code,
            usage.user.get_username(),
            usage.booking.booking_number if usage.booking_id else "-",
            usage.service_category or "unknown",
            float(usage.original_amount),
            float(usage.discount_amount),
            float(usage.final_amount),
            timezone.localtime(usage.used_at).strftime('%d-%b-%Y %I:%M %p'),
        ])

        # Keep the date as text
        ws.cell(row=ws.max_row, column=8).number_format = '@'

    widths = {'A': 16, 'B': 22, 'C': 22, 'D': 16, 'E': 12, 'F': 12, 'G': 12, 'H': 24}
    for col, width in widths.items():
        ws.column_dimensions[col].width = width

    thin = Border(
        left=Side(style='thin'), right=Side(style='thin'),
        top=Side(style='thin'), bottom=Side(style='thin')
    )

    for row in range(2, ws.max_row + 1):
        for col in range(1, len(HEADERS) + 1):
            cell = ws.cell(row=row, column=col)
            cell.border = thin
            if 5 <= col <= 7:
                cell.alignment = Alignment(horizontal="right")

    ws.freeze_panes = "A2"
    return wb


def usage_workbook_response(usages):
    wb = build_usage_workbook(usages)

    response = HttpResponse(
        content_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    )
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    response["Content-Disposition"] = f'attachment; filename="Coupon_Usage_{timestamp}.xlsx"'
    wb.save(response)
    return response
