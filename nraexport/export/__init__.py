"""Report writers."""

from .csv_writer import save_report_csv
from .png_writer import save_depth_profile_png

__all__ = ["save_depth_profile_png", "save_report_csv"]
