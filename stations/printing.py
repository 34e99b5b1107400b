"""
Print job queueing for orders.

Jobs are stored as plain text and picked up by the printer companion apps;
this module only decides which printer gets which document.
"""
import logging
from collections import defaultdict

from django.utils import timezone

from authentication.exceptions import InvalidOperation
from .models import PrintJob, Printer, PrinterCategoryAssignment

logger = logging.getLogger(__name__)

LINE_WIDTH = 42


def _line(left, right=''):
    padding = max(LINE_WIDTH - len(left) - len(right), 1)
    return f"{left}{' ' * padding}{right}"


def render_receipt(order):
    lines = [
        order.organization.name.center(LINE_WIDTH),
        order.area.name.center(LINE_WIDTH),
        '=' * LINE_WIDTH,
        _line('Ordine', order.display_order_number or order.id[:8]),
        _line('Data', timezone.localtime(order.order_datetime).strftime('%d/%m/%Y %H:%M')),
    ]
    if order.customer_name:
        lines.append(_line('Cliente', order.customer_name))
    if order.table_number:
        lines.append(_line('Tavolo', order.table_number))
    lines.append('-' * LINE_WIDTH)

    for item in order.items.select_related('menu_item'):
        lines.append(_line(f"{item.quantity} x {item.menu_item.name}", f"{item.line_total:.2f}"))
        if item.note:
            lines.append(f"   Nota: {item.note}")

    if order.is_takeaway:
        if order.area.takeaway_charge:
            lines.append(_line('Asporto', f"{order.area.takeaway_charge:.2f}"))
    elif order.area.guest_charge:
        lines.append(_line(f"Coperti x{order.number_of_guests}", f"{order.area.guest_charge * order.number_of_guests:.2f}"))

    lines.append('-' * LINE_WIDTH)
    lines.append(_line('TOTALE', f"{order.total_amount:.2f}"))
    if order.payment_method:
        lines.append(_line('Pagamento', order.payment_method))
    return '\n'.join(lines) + '\n'


def render_comanda(order, items):
    lines = [
        'COMANDA'.center(LINE_WIDTH),
        _line('Ordine', order.display_order_number or order.id[:8]),
        _line('Tavolo', order.table_number) if order.table_number else _line('Asporto' if order.is_takeaway else 'Cliente', order.customer_name or ''),
        '-' * LINE_WIDTH,
    ]
    for item in items:
        lines.append(f"{item.quantity} x {item.menu_item.name}")
        if item.note:
            lines.append(f"   Nota: {item.note}")
    return '\n'.join(lines) + '\n'


def _create_job(order, printer, job_type, content):
    job = PrintJob.objects.create(
        organization_id=order.organization_id,
        area_id=order.area_id,
        order=order,
        printer=printer,
        job_type=job_type,
        content=content,
    )
    logger.info(f"Queued {job_type} job {job.id} for order {order.id} on printer {printer.name}")
    return job


def resolve_receipt_printer(order):
    station = order.cashier_station
    printer = station.receipt_printer if station else order.area.receipt_printer
    if printer is None or not printer.is_enabled:
        return None
    return printer


def comandas_at_cashier(order):
    if order.cashier_station is not None:
        return order.cashier_station.print_comandas_at_this_station
    return order.area.print_comandas_at_cashier


def queue_order_print_jobs(order, printer=None, include_receipt=True, include_comandas=True):
    """
    Queue the documents of an order.

    The receipt goes to the cashier station printer, falling back on the area
    receipt printer. Comandas are printed on the same printer when the station
    (or area) prints them at the cashier, otherwise one comanda per printer
    assigned to the ordered categories. An explicit ``printer`` receives every
    document, which is what reprints use.
    """
    jobs = []
    items = list(order.items.select_related('menu_item__category'))

    if include_receipt:
        target = printer or resolve_receipt_printer(order)
        if target is None:
            logger.warning(f"No receipt printer configured for order {order.id} in area {order.area_id}")
        else:
            jobs.append(_create_job(order, target, 'Receipt', render_receipt(order)))

    if include_comandas and items:
        if printer is not None or comandas_at_cashier(order):
            target = printer or resolve_receipt_printer(order)
            if target is not None:
                jobs.append(_create_job(order, target, 'Comanda', render_comanda(order, items)))
        else:
            items_by_printer = defaultdict(list)
            assignments = PrinterCategoryAssignment.objects.select_related('printer').filter(
                menu_category_id__in={item.menu_item.category_id for item in items},
                printer__is_enabled=True,
                printer__organization_id=order.organization_id,
            )
            printers = {}
            for assignment in assignments:
                printers[assignment.printer_id] = assignment.printer
                for item in items:
                    if item.menu_item.category_id == assignment.menu_category_id:
                        items_by_printer[assignment.printer_id].append(item)
            for printer_id, printer_items in items_by_printer.items():
                jobs.append(_create_job(order, printers[printer_id], 'Comanda', render_comanda(order, printer_items)))

    return jobs


def queue_test_print(printer):
    job = PrintJob.objects.create(
        organization_id=printer.organization_id,
        printer=printer,
        job_type='TestPrint',
        content='\n'.join([
            'SagraFacile'.center(LINE_WIDTH),
            'Test di stampa'.center(LINE_WIDTH),
            _line('Stampante', printer.name),
            _line('Data', timezone.localtime().strftime('%d/%m/%Y %H:%M')),
        ]) + '\n',
    )
    logger.info(f"Queued test print {job.id} on printer {printer.name}")
    return job


def retry_print_job(job):
    if job.status != 'Failed':
        raise InvalidOperation(f"Cannot retry a job with status '{job.status}'. Only failed jobs can be retried.")
    job.status = 'Pending'
    job.error_message = None
    job.save(update_fields=['status', 'error_message'])
    logger.info(f"Print job {job.id} requeued")
    return job


def get_printer(organization_id, printer_id):
    printer = Printer.objects.filter(pk=printer_id, organization_id=organization_id).first()
    if printer is None:
        raise InvalidOperation(f"Printer with ID {printer_id} not found in this organization.")
    return printer


def update_print_job_status(job, status, error_message=None):
    """Outcome reported by a companion app"""
    now = timezone.now()
    job.status = status
    job.last_attempt_at = now
    if status == 'Succeeded':
        job.completed_at = now
        job.error_message = None
    elif status == 'Failed':
        job.retry_count += 1
        job.error_message = (error_message or 'Unknown printer error')[:500]
        logger.warning(f"Print job {job.id} failed on printer {job.printer_id}: {job.error_message}")
    job.save()
    return job
