"""
Redis channel names. Every channel carries one company's traffic only.
"""


def channel_company_locations(company_id: int) -> str:
    if isinstance(company_id, bool) or not isinstance(company_id, int) or company_id <= 0:
        raise ValueError(f"company_id must be a positive integer, got {company_id!r}")
    return f"distriapp:company:{company_id}:locations"
