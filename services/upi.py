from decimal import Decimal
from urllib.parse import quote

import config


def build_upi_uri(amount: Decimal) -> str:
    """
    Build the UPI deep link the buyer pays with before uploading proof.

    Example:
        >>> build_upi_uri(Decimal("998.00"))
        'upi://pay?pa=your-vpa@bank&pn=Divaksha&am=998.00&cu=INR'
    """
    return (
        f"upi://pay?pa={config.UPI_ID}"
        f"&pn={quote(config.MERCHANT_NAME, safe='')}"
        f"&am={amount}"
        f"&cu=INR"
    )
