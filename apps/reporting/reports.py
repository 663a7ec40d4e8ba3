"""
Sales reports.

Reports read the sales of one organization for a date range (first of
the current month to today unless given) and an optional branch, then
apply their own filters in Python so every output format works from the
same rows.
"""

from collections import OrderedDict, defaultdict
from datetime import date, datetime
from decimal import Decimal

from django.db.models import F, Sum
from django.utils import timezone

from apps.core.models import STATUS_ACTIVE, Branch
from apps.crm.models import Customer
from apps.inventory.models import Product
from apps.sales.models import Payment, Sale, SaleItem

ZERO = Decimal("0.00")
ALL = "All"
CHART_LIMIT = 5


def parse_date(value, default):
    if isinstance(value, date):
        return value
    if not value:
        return default
    try:
        return datetime.strptime(str(value), "%Y-%m-%d").date()
    except ValueError:
        return default


def is_all(value):
    return value in (None, "", ALL, ALL.lower())


def quantize(value):
    return (value or ZERO).quantize(Decimal("0.01"))


class BaseReport:
    """
    Common parameters and output plumbing of the sales reports.

    Subclasses implement ``build_rows``, ``stats`` and ``chart_data`` and
    declare ``csv_headers`` with a matching ``csv_row``.
    """

    key = ""
    title = ""
    filename = ""
    csv_headers = []
    # Extra query parameters, as (name, label) pairs
    filter_fields = []

    def __init__(self, organization, params=None):
        self.organization = organization
        self._rows = None
        self.filter(params or {})

    def filter(self, params):
        today = timezone.localdate()
        self.date_from = parse_date(params.get("date_from"), today.replace(day=1))
        self.date_to = parse_date(params.get("date_to"), today)
        if self.date_from > self.date_to:
            self.date_from, self.date_to = self.date_to, self.date_from

        self.branch = None
        branch_id = params.get("branch")
        if not is_all(branch_id):
            self.branch = Branch.objects.filter(
                organization=self.organization, pk=branch_id
            ).first()

        self.params = {
            name: (params.get(name) or "").strip() for name, _ in self.filter_fields
        }
        self._rows = None
        return self

    def sales(self):
        queryset = Sale.objects.filter(
            organization=self.organization,
            status=Sale.COMPLETED,
            created_at__date__gte=self.date_from,
            created_at__date__lte=self.date_to,
        )
        if self.branch is not None:
            queryset = queryset.filter(branch=self.branch)
        return queryset

    def sale_items(self):
        return SaleItem.objects.filter(sale__in=self.sales()).select_related(
            "product__main_category", "product__brand", "product__supplier"
        )

    def rows(self):
        if self._rows is None:
            self._rows = self.build_rows()
        return self._rows

    def build_rows(self):
        raise NotImplementedError

    def stats(self):
        raise NotImplementedError

    def chart_data(self):
        return []

    def csv_row(self, row):
        raise NotImplementedError

    def table_rows(self):
        return [self.csv_row(row) for row in self.rows()]

    def filter_summary(self):
        """(label, value) pairs shown in the header of printed reports."""
        summary = [
            ("Period", f"{self.date_from:%Y-%m-%d} to {self.date_to:%Y-%m-%d}"),
            ("Branch", self.branch.name if self.branch else "All Branches"),
        ]
        for name, label in self.filter_fields:
            summary.append((label, self.params.get(name) or ALL))
        return summary

    def summary_metrics(self):
        """(label, value) pairs for the summary block of printed reports."""
        return [(name.replace("_", " ").title(), value) for name, value in self.stats().items()]

    def as_dict(self):
        return {
            "report": self.key,
            "title": self.title,
            "filters": {
                "date_from": self.date_from.isoformat(),
                "date_to": self.date_to.isoformat(),
                "branch": str(self.branch.pk) if self.branch else None,
                **self.params,
            },
            "rows": self.rows(),
            "stats": self.stats(),
            "chart": self.chart_data(),
        }


def _matches(value, wanted):
    return is_all(wanted) or (value or "").lower() == wanted.lower()


class SalesByProductReport(BaseReport):
    key = "sales-by-product"
    title = "Sales by Product"
    filename = "sales_by_product"
    csv_headers = [
        "Product Name",
        "SKU",
        "Category",
        "Brand",
        "Qty Sold",
        "Unit Price",
        "Total Sales",
        "Total Profit",
    ]
    filter_fields = [("search", "Search"), ("category", "Category"), ("brand", "Brand")]

    def build_rows(self):
        grouped = OrderedDict()
        for item in self.sale_items().order_by("product__name"):
            product = item.product
            row = grouped.get(product.pk)
            if row is None:
                row = grouped[product.pk] = {
                    "id": str(product.pk),
                    "name": product.name,
                    "sku": product.code,
                    "category": product.main_category.name if product.main_category else "",
                    "brand": product.brand.name if product.brand else "",
                    "sold": 0,
                    "sales": ZERO,
                    "cost": ZERO,
                }
            row["sold"] += item.quantity
            row["sales"] += item.line_total
            row["cost"] += item.cost_price * item.quantity

        search = self.params["search"].lower()
        rows = []
        for row in grouped.values():
            if search and search not in row["name"].lower() and search not in row["sku"].lower():
                continue
            if not _matches(row["category"], self.params["category"]):
                continue
            if not _matches(row["brand"], self.params["brand"]):
                continue
            cost = row.pop("cost")
            row["price"] = quantize(row["sales"] / row["sold"]) if row["sold"] else ZERO
            row["sales"] = quantize(row["sales"])
            row["profit"] = quantize(row["sales"] - cost)
            rows.append(row)
        return rows

    def stats(self):
        rows = self.rows()
        top_selling = max(rows, key=lambda row: row["sold"], default=None)
        top_revenue = max(rows, key=lambda row: row["sales"], default=None)
        return {
            "total_sold": sum(row["sold"] for row in rows),
            "total_revenue": sum((row["sales"] for row in rows), ZERO),
            "total_profit": sum((row["profit"] for row in rows), ZERO),
            "top_selling_item": top_selling["name"] if top_selling else None,
            "top_revenue_item": top_revenue["name"] if top_revenue else None,
        }

    def chart_data(self):
        ranked = sorted(self.rows(), key=lambda row: row["sold"], reverse=True)
        return [{"name": row["name"], "sold": row["sold"]} for row in ranked[:CHART_LIMIT]]

    def csv_row(self, row):
        return [
            row["name"],
            row["sku"],
            row["category"],
            row["brand"],
            row["sold"],
            row["price"],
            row["sales"],
            row["profit"],
        ]


class SalesBySupplierReport(BaseReport):
    """
    Sales grouped by the supplier of each product. A supplier's category is
    the main category it sold most of; the category filter limits the sales
    counted to that category.
    """

    key = "sales-by-supplier"
    title = "Sales by Supplier"
    filename = "sales_by_supplier"
    csv_headers = [
        "Supplier Name",
        "Category",
        "Items Sold",
        "Total Sales",
        "Discount",
        "Net Sales",
        "Total Profit",
        "Avg Sale/Product",
    ]
    filter_fields = [("search", "Search"), ("category", "Category")]

    def build_rows(self):
        grouped = OrderedDict()
        category_sales = defaultdict(lambda: defaultdict(Decimal))
        items = self.sale_items().filter(product__supplier__isnull=False)
        for item in items.order_by("product__supplier__name"):
            product = item.product
            category = product.main_category.name if product.main_category else ""
            if not _matches(category, self.params["category"]):
                continue
            supplier = product.supplier
            row = grouped.get(supplier.pk)
            if row is None:
                row = grouped[supplier.pk] = {
                    "id": str(supplier.pk),
                    "name": supplier.name,
                    "sold": 0,
                    "total_sales": ZERO,
                    "discount": ZERO,
                    "cost": ZERO,
                }
            row["sold"] += item.quantity
            row["total_sales"] += item.gross
            row["discount"] += item.discount_amount
            row["cost"] += item.cost_price * item.quantity
            category_sales[supplier.pk][category] += item.line_total

        search = self.params["search"].lower()
        rows = []
        for supplier_id, row in grouped.items():
            if search and search not in row["name"].lower():
                continue
            categories = category_sales[supplier_id]
            cost = row.pop("cost")
            row["category"] = max(categories, key=categories.get) if categories else ""
            row["total_sales"] = quantize(row["total_sales"])
            row["discount"] = quantize(row["discount"])
            row["net_sales"] = quantize(row["total_sales"] - row["discount"])
            row["profit"] = quantize(row["net_sales"] - cost)
            rows.append(row)
        return rows

    def stats(self):
        rows = self.rows()
        top = max(rows, key=lambda row: row["total_sales"], default=None)
        return {
            "total_sales": sum((row["total_sales"] for row in rows), ZERO),
            "total_profit": sum((row["profit"] for row in rows), ZERO),
            "top_supplier": top["name"] if top else None,
            "active_suppliers": len(rows),
        }

    def chart_data(self):
        ranked = sorted(self.rows(), key=lambda row: row["total_sales"], reverse=True)
        return [
            {"name": row["name"], "total_sales": row["total_sales"]} for row in ranked[:CHART_LIMIT]
        ]

    def csv_row(self, row):
        average = quantize(row["net_sales"] / row["sold"]) if row["sold"] else ZERO
        return [
            row["name"],
            row["category"],
            row["sold"],
            row["total_sales"],
            row["discount"],
            row["net_sales"],
            row["profit"],
            average,
        ]


class CardReconciliationReport(BaseReport):
    """
    Card payments, including refund reversals, to match against the card
    terminal's settlement batches.
    """

    key = "card-reconciliation"
    title = "Card Reconciliation"
    filename = "card_reconciliation"
    csv_headers = ["Date", "Invoice", "Card", "Last 4", "Auth Code", "Amount", "Status", "Batch"]
    filter_fields = [("card_type", "Card Type"), ("status", "Status"), ("search", "Search")]

    DISCREPANCY_STATUSES = (Payment.FAILED, Payment.PENDING)

    def payments(self):
        queryset = Payment.objects.filter(
            method=Payment.CARD,
            sale__organization=self.organization,
            created_at__date__gte=self.date_from,
            created_at__date__lte=self.date_to,
        ).select_related("sale")
        if self.branch is not None:
            queryset = queryset.filter(sale__branch=self.branch)
        return queryset.order_by("-created_at")

    def build_rows(self):
        search = self.params["search"].lower()
        rows = []
        for payment in self.payments():
            invoice = payment.sale.invoice_number
            if not _matches(payment.card_type, self.params["card_type"]):
                continue
            if not _matches(payment.status, self.params["status"]):
                continue
            if search and search not in invoice.lower() and search not in payment.last4:
                continue
            rows.append(
                {
                    "id": str(payment.pk),
                    "date": timezone.localtime(payment.created_at).strftime("%Y-%m-%d %H:%M:%S"),
                    "invoice": invoice,
                    "card_type": payment.card_type,
                    "last4": payment.last4,
                    "auth_code": payment.auth_code,
                    "amount": payment.amount,
                    "status": payment.status,
                    "batch": payment.batch,
                }
            )
        return rows

    def stats(self):
        rows = self.rows()
        total_sales = sum((row["amount"] for row in rows if row["amount"] > 0), ZERO)
        total_refunds = sum((row["amount"] for row in rows if row["amount"] < 0), ZERO)
        return {
            "total_sales": total_sales,
            "total_refunds": total_refunds,
            "net_amount": total_sales + total_refunds,
            "total_count": len(rows),
            "discrepancy_count": sum(
                1 for row in rows if row["status"] in self.DISCREPANCY_STATUSES
            ),
        }

    def chart_data(self):
        totals = defaultdict(Decimal)
        for row in self.rows():
            if row["amount"] > 0:
                totals[row["card_type"]] += row["amount"]
        ranked = sorted(totals.items(), key=lambda pair: pair[1], reverse=True)
        return [{"name": name, "amount": amount} for name, amount in ranked[:CHART_LIMIT]]

    def csv_row(self, row):
        return [
            row["date"],
            row["invoice"],
            row["card_type"],
            row["last4"],
            row["auth_code"],
            row["amount"],
            row["status"],
            row["batch"],
        ]


class DailySalesReport(BaseReport):
    key = "daily-sales"
    title = "Daily Sales"
    filename = "daily_sales"
    csv_headers = ["Date", "Transactions", "Gross", "Discount", "Tax", "Net", "Cash", "Card"]

    def build_rows(self):
        days = OrderedDict()
        sales = self.sales().order_by("created_at").prefetch_related("payments")
        for sale in sales:
            day = timezone.localtime(sale.created_at).date().isoformat()
            row = days.get(day)
            if row is None:
                row = days[day] = {
                    "date": day,
                    "transactions": 0,
                    "gross": ZERO,
                    "discount": ZERO,
                    "tax": ZERO,
                    "net": ZERO,
                    "cash": ZERO,
                    "card": ZERO,
                }
            row["transactions"] += 1
            row["gross"] += sale.subtotal
            row["discount"] += sale.discount
            row["tax"] += sale.tax
            row["net"] += sale.net_total
            for payment in sale.payments.all():
                if payment.amount <= 0:
                    continue
                row["cash" if payment.method == Payment.CASH else "card"] += payment.amount
        return list(days.values())

    def totals(self):
        totals = {
            "transactions": 0,
            "gross": ZERO,
            "discount": ZERO,
            "tax": ZERO,
            "net": ZERO,
            "cash": ZERO,
            "card": ZERO,
        }
        for row in self.rows():
            for name in totals:
                totals[name] += row[name]
        return totals

    def stats(self):
        totals = self.totals()
        transactions = totals["transactions"]
        return {
            **totals,
            "average_sale": quantize(totals["net"] / transactions) if transactions else ZERO,
        }

    def chart_data(self):
        return [{"name": row["date"], "net": row["net"]} for row in self.rows()]

    def csv_row(self, row):
        return [
            row["date"],
            row["transactions"],
            row["gross"],
            row["discount"],
            row["tax"],
            row["net"],
            row["cash"],
            row["card"],
        ]


REPORTS = OrderedDict(
    (report.key, report)
    for report in (
        SalesByProductReport,
        SalesBySupplierReport,
        CardReconciliationReport,
        DailySalesReport,
    )
)


def dashboard_summary(organization, recent=10):
    """Stat cards and recent sales for the dashboard."""
    today = timezone.localdate()
    today_sales = Sale.objects.filter(
        organization=organization, status=Sale.COMPLETED, created_at__date=today
    )
    products = Product.objects.filter(organization=organization, status=STATUS_ACTIVE)
    low_stock = products.filter(track_quantity=True, quantity__lte=F("reorder_level"))

    stats = [
        {
            "key": "today_sales",
            "label": "Today's Sales",
            "value": quantize(today_sales.aggregate(total=Sum("net_total"))["total"]),
        },
        {"key": "transactions", "label": "Transactions", "value": today_sales.count()},
        {"key": "products", "label": "Products", "value": products.count()},
        {
            "key": "customers",
            "label": "Customers",
            "value": Customer.objects.filter(organization=organization).count(),
        },
        {"key": "low_stock", "label": "Low Stock", "value": low_stock.count()},
    ]

    activity = []
    latest = (
        Sale.objects.filter(organization=organization)
        .select_related("customer", "cashier")
        .order_by("-created_at")[:recent]
    )
    for sale in latest:
        activity.append(
            {
                "id": str(sale.pk),
                "type": "refund" if sale.status == Sale.REFUNDED else "sale",
                "invoice": sale.invoice_number,
                "customer": sale.customer.name if sale.customer else "Walk-in",
                "cashier": sale.cashier.name,
                "amount": sale.net_total,
                "created_at": sale.created_at,
            }
        )
    return {"stats": stats, "recent_activity": activity}
