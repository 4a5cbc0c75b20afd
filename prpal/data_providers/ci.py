from typing import Any, Dict, Optional

FAILED_CONCLUSIONS = ("failure", "cancelled", "timed_out")


def summarize_ci_status(ci_data: Optional[Dict[str, Any]]) -> str:
    """Collapse raw CI data to a single worst-of status.

    Check runs win over legacy commit statuses. Returns one of
    ``failure``, ``pending``, ``success``, ``unknown`` or ``none``.
    """
    if not ci_data:
        return "none"

    check_runs = ci_data.get("check_runs") or []
    statuses = ci_data.get("statuses") or []

    if check_runs:
        conclusions = [run.get("conclusion") for run in check_runs if run.get("conclusion")]
        run_statuses = [run.get("status") for run in check_runs if run.get("status")]
        if any(conclusion in FAILED_CONCLUSIONS for conclusion in conclusions):
            return "failure"
        if "in_progress" in run_statuses or "pending" in conclusions:
            return "pending"
        if "success" in conclusions:
            return "success"
        return "unknown"

    if statuses:
        states = [status.get("state") for status in statuses]
        for state in ("failure", "pending", "success"):
            if state in states:
                return state
        return "unknown"

    return "none"
