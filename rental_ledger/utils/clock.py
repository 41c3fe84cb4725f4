from datetime import datetime

from flask import current_app, has_app_context


def now() -> datetime:
    """Current UTC time (naive, second precision).

    Tests pin it through the LEDGER_CLOCK config key so paid_date and
    whatsapp_sent_at are deterministic.
    """

    clock = current_app.config.get("LEDGER_CLOCK") if has_app_context() else None
    if clock is not None:
        return clock()
    return datetime.utcnow().replace(microsecond=0)
