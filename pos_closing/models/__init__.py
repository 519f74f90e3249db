from pos_closing.models.daily_report import DailyReportModel  # noqa: F401
