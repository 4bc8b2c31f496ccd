"""
Export Service.

Builds CSV downloads of a merchant's ledger. Header labels follow the
requested locale (falling back to English); amounts are formatted with
the profile currency.
"""

import csv
import io
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from ledgerly.app.core.exceptions import InvalidRequestError
from ledgerly.app.models.enums import TransactionType
from ledgerly.app.schemas.export import ExportRequest
from ledgerly.app.services.customers import CustomerService
from ledgerly.app.services.dashboard import DashboardService
from ledgerly.app.services.transactions import TransactionService
from ledgerly.app.services.user_profiles import UserProfileService

logger = logging.getLogger(__name__)

# Upper bound on rows in one transactions export
EXPORT_ROW_LIMIT = 100000

CSV_HEADERS: Dict[str, Dict[str, str]] = {
    "en": {
        "date": "Date", "customer": "Customer", "type": "Type", "description": "Description",
        "amount": "Amount", "balance": "Running Balance", "debt": "Debt", "payment": "Payment",
        "phone": "Phone", "transactions": "Transactions",
    },
    "tr": {
        "date": "Tarih", "customer": "Musteri", "type": "Tip", "description": "Aciklama",
        "amount": "Tutar", "balance": "Bakiye", "debt": "Borclanma", "payment": "Odeme",
        "phone": "Telefon", "transactions": "Islemler",
    },
    "es": {
        "date": "Fecha", "customer": "Cliente", "type": "Tipo", "description": "Descripcion",
        "amount": "Monto", "balance": "Saldo", "debt": "Deuda", "payment": "Pago",
        "phone": "Telefono", "transactions": "Transacciones",
    },
    "id": {
        "date": "Tanggal", "customer": "Pelanggan", "type": "Jenis", "description": "Keterangan",
        "amount": "Jumlah", "balance": "Saldo", "debt": "Hutang", "payment": "Pembayaran",
        "phone": "Telepon", "transactions": "Transaksi",
    },
    "hi": {
        "date": "तारीख", "customer": "ग्राहक", "type": "प्रकार", "description": "विवरण",
        "amount": "राशि", "balance": "शेष", "debt": "ऋण", "payment": "भुगतान",
        "phone": "फ़ोन", "transactions": "लेनदेन",
    },
    "ar": {
        "date": "التاريخ", "customer": "العميل", "type": "النوع", "description": "الوصف",
        "amount": "المبلغ", "balance": "الرصيد", "debt": "دين", "payment": "دفعة",
        "phone": "الهاتف", "transactions": "المعاملات",
    },
    "zu": {
        "date": "Usuku", "customer": "Ikhasimende", "type": "Uhlobo", "description": "Incazelo",
        "amount": "Inani", "balance": "Isisindo", "debt": "Isikweletu", "payment": "Inkokhelo",
        "phone": "Ucingo", "transactions": "Imisebenzi",
    },
}


def headers_for(locale: Optional[str]) -> Dict[str, str]:
    """Header labels for a locale such as "tr" or "tr-TR"."""
    if not locale:
        return CSV_HEADERS["en"]
    return CSV_HEADERS.get(locale.split("-")[0].lower(), CSV_HEADERS["en"])


CENTS = Decimal("0.01")


def to_money(value: Any) -> Decimal:
    """Exact two-place amount; floats go through their repr, not their binary value."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENTS)


def format_money(amount: Any, currency: str) -> str:
    return f"{to_money(amount):,.2f} {currency}"


def format_date(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d") if value else ""


def _writer(buffer: io.StringIO):
    return csv.writer(buffer, lineterminator="\n")


def transactions_csv(
    transactions: List[Dict[str, Any]],
    currency: str,
    locale: Optional[str] = None,
    business_name: Optional[str] = None,
    period: Optional[Tuple[Optional[datetime], Optional[datetime]]] = None
) -> str:
    """
    Transactions oldest first with a running balance.

    Debts are written with a leading "-", payments with "+"; the running
    balance is positive while the customer owes money.
    """
    labels = headers_for(locale)
    buffer = io.StringIO()

    if business_name:
        buffer.write(f"# {business_name}\n")
    buffer.write(f"# Export Date: {datetime.now(timezone.utc).strftime('%Y-%m-%d')}\n")
    if period and (period[0] or period[1]):
        buffer.write(f"# Period: {format_date(period[0])} to {format_date(period[1])}\n")
    buffer.write("#\n")

    writer = _writer(buffer)
    writer.writerow([labels[k] for k in ("date", "customer", "type", "description", "amount", "balance")])

    ordered = sorted(transactions, key=lambda t: (t["transaction_date"], t["id"]))
    running = Decimal("0.00")
    for txn in ordered:
        is_debt = txn["type"] == TransactionType.DEBT
        value = to_money(txn["amount"])
        running = running + value if is_debt else running - value

        amount = format_money(value, currency)
        balance = format_money(abs(running), currency)
        writer.writerow([
            format_date(txn["transaction_date"]),
            txn.get("customer_name") or "",
            labels["debt"] if is_debt else labels["payment"],
            txn.get("description") or "",
            f"-{amount}" if is_debt else f"+{amount}",
            balance if running >= 0 else f"-{balance}",
        ])

    if ordered:
        buffer.write("#\n")
        buffer.write(f"# Total Transactions: {len(ordered)}\n")
        credit = " (credit)" if running < 0 else ""
        buffer.write(f"# Final Balance: {format_money(abs(running), currency)}{credit}\n")

    return buffer.getvalue()


def customers_csv(customers: List[Dict[str, Any]], currency: str, locale: Optional[str] = None) -> str:
    labels = headers_for(locale)
    buffer = io.StringIO()
    writer = _writer(buffer)
    writer.writerow([labels[k] for k in ("customer", "phone", "balance", "transactions", "date")])
    for customer in customers:
        writer.writerow([
            customer["name"],
            customer["phone"] or "",
            format_money(customer["balance"], currency),
            customer["transaction_count"],
            format_date(customer["last_transaction_date"]),
        ])
    return buffer.getvalue()


def summary_csv(stats: Dict[str, Any]) -> str:
    buffer = io.StringIO()
    writer = _writer(buffer)
    writer.writerow(["metric", "value"])
    writer.writerow(["totalDebt", f"{stats['total_debt']:.2f}"])
    writer.writerow(["totalCollected", f"{stats['total_collected']:.2f}"])
    writer.writerow(["activeCustomers", stats["active_customers"]])
    writer.writerow(["totalTransactions", stats["total_transactions"]])
    writer.writerow(["currency", stats["currency"]])
    return buffer.getvalue()


class ExportService:

    @staticmethod
    async def export(db: AsyncSession, user_id: int, request: ExportRequest) -> Tuple[str, str]:
        """
        Build an export file.

        Returns:
            (filename, content)

        Raises:
            InvalidRequestError: unsupported format (only csv is generated)
        """
        if request.format != "csv":
            raise InvalidRequestError(
                f"Export format '{request.format}' is not supported. Use 'csv'.",
                details={"format": request.format},
            )

        profile = await UserProfileService.get_profile(db, user_id)
        locale = request.locale or profile.language
        stamp = datetime.now(timezone.utc).strftime("%Y-%m-%d")

        if request.type == "transactions":
            start = request.date_range.start if request.date_range else None
            end = request.date_range.end if request.date_range else None
            transactions = await TransactionService.get_transactions(
                db, user_id, limit=EXPORT_ROW_LIMIT, start=start, end=end
            )
            content = transactions_csv(
                transactions, profile.currency, locale, profile.shop_name, (start, end)
            )
        elif request.type == "customers":
            customers = await CustomerService.get_customers(db, user_id)
            content = customers_csv(customers, profile.currency, locale)
        else:
            content = summary_csv(await DashboardService.get_stats(db, user_id))

        logger.info("User %s exported %s as csv", user_id, request.type)
        return f"{request.type}_{stamp}.csv", content
