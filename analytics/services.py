"""
Sales analytics and plain-text reports.

Only counted orders are considered: pre-orders, pending and cancelled
orders never contribute to sales figures.
"""
import logging
from datetime import timedelta
from decimal import Decimal, ROUND_HALF_UP

from django.db.models import Count, F, Sum, DecimalField
from django.db.models.functions import ExtractHour, TruncDate
from django.utils import timezone
from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from authentication.exceptions import InvalidOperation, ResourceNotFound
from menu.models import Area
from orders.models import Day, Order, OrderItem

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal('0.01')


def round_money(value):
    return Decimal(value or 0).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def percentage(part, whole):
    if not whole:
        return Decimal('0.00')
    return round_money(Decimal(part) * 100 / Decimal(whole))


def format_euro(value):
    return f"EUR {round_money(value):.2f}"


def counted_orders(organization_id):
    return Order.objects.filter(organization_id=organization_id).exclude(status__in=Order.UNCOUNTED_STATUSES)


def get_target_day(organization_id, day_id=None):
    """The requested day, else the open day, else the most recently closed one"""
    if day_id:
        day = Day.objects.filter(pk=day_id, organization_id=organization_id).first()
        if day is None:
            raise ResourceNotFound(f"Day with ID {day_id} not found for this organization.")
        return day
    day = Day.objects.filter(organization_id=organization_id, status="Open").order_by('-start_time').first()
    if day is None:
        day = Day.objects.filter(organization_id=organization_id, status="Closed").order_by('-end_time').first()
    return day


def get_organization_area(organization_id, area_id):
    area = Area.objects.filter(pk=area_id, organization_id=organization_id).first()
    if area is None:
        raise ResourceNotFound(f"Area with ID {area_id} not found in this organization.")
    return area


def day_date(day):
    return timezone.localtime(day.start_time).date()


def trend_dates(days):
    end_date = timezone.localdate()
    return [end_date - timedelta(days=offset) for offset in range(days - 1, -1, -1)]


def days_by_date(organization_id, dates):
    queryset = Day.objects.filter(
        organization_id=organization_id, start_time__date__gte=dates[0], start_time__date__lte=dates[-1]
    )
    return {day_date(day): day.id for day in queryset}


# =============== DASHBOARD ===============

def get_kpis(organization_id, day_id=None):
    day = get_target_day(organization_id, day_id)
    if day is None:
        return {
            'day_id': None,
            'day_date': None,
            'today_total_sales': Decimal('0.00'),
            'today_order_count': 0,
            'average_order_value': Decimal('0.00'),
            'total_coperti': 0,
            'most_popular_category': None,
        }

    orders = counted_orders(organization_id).filter(day=day)
    totals = orders.aggregate(sales=Sum('total_amount'), count=Count('id'), guests=Sum('number_of_guests'))
    sales = round_money(totals['sales'])
    count = totals['count'] or 0

    popular = OrderItem.objects.filter(order__in=orders).values('menu_item__category__name').annotate(
        quantity=Sum('quantity')
    ).order_by('-quantity').first()

    return {
        'day_id': day.id,
        'day_date': day_date(day),
        'today_total_sales': sales,
        'today_order_count': count,
        'average_order_value': round_money(sales / count) if count else Decimal('0.00'),
        'total_coperti': totals['guests'] or 0,
        'most_popular_category': popular['menu_item__category__name'] if popular else None,
    }


def get_sales_trend(organization_id, days=7):
    dates = trend_dates(days)
    rows = counted_orders(organization_id).filter(
        day__start_time__date__gte=dates[0], day__start_time__date__lte=dates[-1]
    ).annotate(date=TruncDate('day__start_time')).values('date').annotate(
        sales=Sum('total_amount'), order_count=Count('id')
    )
    by_date = {row['date']: row for row in rows}
    day_ids = days_by_date(organization_id, dates)

    return [
        {
            'date': date,
            'day_id': day_ids.get(date),
            'sales': round_money(by_date[date]['sales']) if date in by_date else Decimal('0.00'),
            'order_count': by_date[date]['order_count'] if date in by_date else 0,
        }
        for date in dates
    ]


def get_order_status_distribution(organization_id, day_id=None):
    day = get_target_day(organization_id, day_id)
    if day is None:
        return []
    rows = list(Order.objects.filter(organization_id=organization_id, day=day).values('status').annotate(
        count=Count('id')
    ).order_by('status'))
    total = sum(row['count'] for row in rows)
    return [
        {'status': row['status'], 'count': row['count'], 'percentage': percentage(row['count'], total)}
        for row in rows
    ]


def get_top_menu_items(organization_id, days=7, limit=5):
    dates = trend_dates(days)
    return [
        {
            'item_name': row['menu_item__name'],
            'category_name': row['menu_item__category__name'],
            'quantity': row['quantity'],
            'revenue': round_money(row['revenue']),
        }
        for row in OrderItem.objects.filter(
            order__in=counted_orders(organization_id),
            order__day__start_time__date__gte=dates[0],
            order__day__start_time__date__lte=dates[-1],
        ).values('menu_item_id', 'menu_item__name', 'menu_item__category__name').annotate(
            quantity=Sum('quantity'),
            revenue=Sum(F('quantity') * F('unit_price'), output_field=DecimalField(max_digits=12, decimal_places=2)),
        ).order_by('-quantity', '-revenue')[:limit]
    ]


# =============== ORDERS ===============

def scoped_day_orders(organization_id, area_id=None, day_id=None):
    """Counted orders of the target day, None when there is no day to report on"""
    if area_id:
        get_organization_area(organization_id, area_id)
    day = get_target_day(organization_id, day_id)
    if day is None:
        return None
    orders = counted_orders(organization_id).filter(day=day)
    if area_id:
        orders = orders.filter(area_id=area_id)
    return orders


def get_orders_by_hour(organization_id, area_id=None, day_id=None):
    orders = scoped_day_orders(organization_id, area_id, day_id)
    if orders is None:
        return []
    rows = orders.annotate(hour=ExtractHour('order_datetime')).values('hour').annotate(
        order_count=Count('id'), revenue=Sum('total_amount')
    )
    by_hour = {row['hour']: row for row in rows}
    return [
        {
            'hour': hour,
            'order_count': by_hour[hour]['order_count'] if hour in by_hour else 0,
            'revenue': round_money(by_hour[hour]['revenue']) if hour in by_hour else Decimal('0.00'),
        }
        for hour in range(24)
    ]


def get_payment_method_distribution(organization_id, area_id=None, day_id=None):
    orders = scoped_day_orders(organization_id, area_id, day_id)
    if orders is None:
        return []
    rows = list(orders.exclude(payment_method__isnull=True).exclude(payment_method='').values(
        'payment_method'
    ).annotate(count=Count('id'), amount=Sum('total_amount')).order_by('payment_method'))
    total_amount = sum((row['amount'] or 0 for row in rows), Decimal('0.00'))
    return [
        {
            'payment_method': row['payment_method'],
            'count': row['count'],
            'amount': round_money(row['amount']),
            'percentage': percentage(row['amount'] or 0, total_amount),
        }
        for row in rows
    ]


def get_average_value_trend(organization_id, area_id=None, days=7):
    if area_id:
        get_organization_area(organization_id, area_id)
    dates = trend_dates(days)
    orders = counted_orders(organization_id).filter(
        day__start_time__date__gte=dates[0], day__start_time__date__lte=dates[-1]
    )
    if area_id:
        orders = orders.filter(area_id=area_id)
    rows = orders.annotate(date=TruncDate('day__start_time')).values('date').annotate(
        sales=Sum('total_amount'), order_count=Count('id')
    )
    by_date = {row['date']: row for row in rows}
    day_ids = days_by_date(organization_id, dates)

    result = []
    for date in dates:
        row = by_date.get(date)
        count = row['order_count'] if row else 0
        result.append({
            'date': date,
            'day_id': day_ids.get(date),
            'average_value': round_money(row['sales'] / count) if count else Decimal('0.00'),
            'order_count': count,
        })
    return result


def get_order_status_timeline(organization_id, area_id=None, day_id=None):
    if area_id:
        get_organization_area(organization_id, area_id)
    day = get_target_day(organization_id, day_id)
    if day is None:
        return []
    orders = Order.objects.filter(organization_id=organization_id, day=day)
    if area_id:
        orders = orders.filter(area_id=area_id)
    return [
        {
            'order_id': order.id,
            'display_order_number': order.display_order_number,
            'status': order.status,
            'timestamp': order.order_datetime,
        }
        for order in orders.order_by('order_datetime', 'display_order_number')
    ]


# =============== REPORTS ===============

def report_header(title, organization_id, *lines):
    generated_at = timezone.now().strftime('%Y-%m-%d %H:%M:%S')
    return [
        f"{title} - SagraFacile",
        f"Organization ID: {organization_id}",
        *lines,
        f"Generated At: {generated_at} UTC",
        "---",
    ]


def daily_summary_report(organization_id, day_id):
    day = Day.objects.filter(pk=day_id, organization_id=organization_id).first()
    if day is None:
        raise ResourceNotFound(f"Day with ID {day_id} not found for this organization.")

    lines = report_header("Daily Summary Report", organization_id, f"Day ID: {day.id} ({day_date(day):%Y-%m-%d})")
    orders = counted_orders(organization_id).filter(day=day)
    totals = orders.aggregate(sales=Sum('total_amount'), count=Count('id'))
    if not totals['count']:
        lines.append("No orders found for this day.")
        return '\n'.join(lines) + '\n'

    sales = round_money(totals['sales'])
    lines += [
        f"Total Orders: {totals['count']}",
        f"Total Sales: {format_euro(sales)}",
        f"Average Order Value: {format_euro(sales / totals['count'])}",
        "",
        "Sales by Category:",
    ]

    line_revenue = Sum(F('quantity') * F('unit_price'), output_field=DecimalField(max_digits=12, decimal_places=2))
    items = OrderItem.objects.filter(order__in=orders)
    for row in items.values('menu_item__category__name').annotate(total=line_revenue).order_by('-total'):
        lines.append(f"- {row['menu_item__category__name']}: {format_euro(row['total'])}")

    lines += ["", "Top Selling Items (by Quantity):"]
    top_items = items.values('menu_item__name').annotate(quantity=Sum('quantity'), revenue=line_revenue).order_by('-quantity')[:10]
    for row in top_items:
        lines.append(f"- {row['menu_item__name']}: {row['quantity']} units (Revenue: {format_euro(row['revenue'])})")

    lines += ["", "Payment Method Distribution:"]
    for row in orders.exclude(payment_method__isnull=True).exclude(payment_method='').values('payment_method').annotate(
        count=Count('id'), amount=Sum('total_amount')
    ).order_by('payment_method'):
        lines.append(f"- {row['payment_method']}: {row['count']} orders, Total: {format_euro(row['amount'])}")

    logger.info(f"Daily summary report generated for day {day.id} of organization {organization_id}")
    return '\n'.join(lines) + '\n'


def area_performance_rows(organization_id, start_date, end_date):
    if start_date > end_date:
        raise InvalidOperation("Start date cannot be after end date.")
    return list(counted_orders(organization_id).filter(
        day__start_time__date__gte=start_date, day__start_time__date__lte=end_date
    ).values('area__name').annotate(sales=Sum('total_amount'), count=Count('id')).order_by('area__name'))


def area_performance_report(organization_id, start_date, end_date):
    lines = report_header(
        "Area Performance Report", organization_id, f"Period: {start_date:%Y-%m-%d} to {end_date:%Y-%m-%d}"
    )
    rows = area_performance_rows(organization_id, start_date, end_date)
    if not rows:
        lines.append("No orders found for this period.")
        return '\n'.join(lines) + '\n'

    lines.append("Performance by Area:")
    for row in rows:
        lines += [
            f"- Area: {row['area__name']}",
            f"  Total Sales: {format_euro(row['sales'])}",
            f"  Order Count: {row['count']}",
            f"  Average Order Value: {format_euro(row['sales'] / row['count'])}",
            "",
        ]

    logger.info(f"Area performance report generated for organization {organization_id} ({start_date} - {end_date})")
    return '\n'.join(lines) + '\n'


def area_performance_workbook(organization_id, start_date, end_date):
    """Same figures as the text report, as an Excel sheet"""
    rows = area_performance_rows(organization_id, start_date, end_date)

    wb = Workbook()
    ws = wb.active
    ws.title = "Area Performance"
    header_font = Font(bold=True, size=12)

    ws['A1'] = "Area Performance Report - SagraFacile"
    ws['A1'].font = Font(bold=True, size=16)
    ws['A2'] = f"Period: {start_date:%Y-%m-%d} to {end_date:%Y-%m-%d}"
    ws.merge_cells('A1:D1')
    ws.merge_cells('A2:D2')

    for col, header in enumerate(['Area', 'Total Sales', 'Order Count', 'Average Order Value'], 1):
        ws.cell(row=4, column=col, value=header).font = header_font

    row_number = 5
    for row in rows:
        ws.cell(row=row_number, column=1, value=row['area__name'])
        ws.cell(row=row_number, column=2, value=float(round_money(row['sales'])))
        ws.cell(row=row_number, column=3, value=row['count'])
        ws.cell(row=row_number, column=4, value=float(round_money(row['sales'] / row['count'])))
        row_number += 1

    for index, column in enumerate(ws.iter_cols(min_row=4), 1):
        width = max((len(str(cell.value)) for cell in column if cell.value is not None), default=10)
        ws.column_dimensions[get_column_letter(index)].width = min(width + 2, 30)
    return wb
