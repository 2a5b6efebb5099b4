"""Shared helpers for view-model builders."""


def build_meta(
    report_stamp: str | None = None,
    report_date: str | None = None,
    report_id: str | None = None,
) -> dict[str, str | None]:
    """Standard meta block shared across all view-model builders."""
    return {
        "report_stamp": report_stamp,
        "report_date": report_date,
        "report_id": report_id,
    }
