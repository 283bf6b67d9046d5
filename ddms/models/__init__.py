from decimal import Decimal, InvalidOperation


def format_inr(amount: Decimal | int | float) -> str:
    """Format an amount in rupees: Decimal('150000.5') -> '₹ 1,50,000.50'"""
    value = Decimal(str(amount)).quantize(Decimal("0.01"))
    sign = "-" if value < 0 else ""
    whole, _, fraction = f"{abs(value):.2f}".partition(".")
    # Indian grouping: last three digits, then pairs.
    head, tail = whole[:-3], whole[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    grouped = ",".join(groups + [tail]) if groups else tail
    return f"₹ {sign}{grouped}.{fraction}"


def parse_amount(text: str) -> Decimal | None:
    """Parse a rupee amount typed by the user. Returns None on invalid input.

    Accepts formats like '1500', '1500.50', '1,500.50', '₹ 1,500'.
    """
    text = text.strip().replace("₹", "").replace(",", "").strip()
    if not text:
        return None
    try:
        value = Decimal(text)
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return value.quantize(Decimal("0.01"))
