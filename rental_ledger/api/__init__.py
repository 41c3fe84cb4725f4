from .block_routes import bp as blocks_bp
from .report_routes import bp as reports_bp

__all__ = [
    "blocks_bp",
    "reports_bp",
]
