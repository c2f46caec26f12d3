# betdesk/main/analytics.py
# ---------------------------------
# Admin analytics for one month: totals plus breakdowns by operator,
# sport, bookmaker and software tool.

from flask import jsonify, request
from flask_login import login_required

from ..policy import admin_required, current_viewer
from ..services.bets import period_bets
from ..services.dre import month_range, parse_month_key, recent_month_keys
from ..services.stats import (
    breakdown_by_bookmaker, breakdown_by_operator, breakdown_by_software,
    breakdown_by_sport, compute_stats,
)
from ..services.users import profile_names
from ..store import store
from . import main


@main.route("/analytics", methods=["GET"], endpoint="analytics")
@login_required
@admin_required
def analytics():
    year, month = parse_month_key(request.args.get("month"))
    start, end = month_range(year, month)
    bets = period_bets(current_viewer(), start, end)
    bookmaker_names = {b.id: b.name for b in store.select("bookmakers")}

    def rows(groups):
        return [g.to_dict() for g in groups]

    return jsonify({
        "month": f"{year:04d}-{month:02d}",
        "months": recent_month_keys(),
        "totals": compute_stats(bets).to_dict(),
        "by_operator": rows(breakdown_by_operator(bets, profile_names())),
        "by_sport": rows(breakdown_by_sport(bets)),
        "by_bookmaker": rows(breakdown_by_bookmaker(bets, bookmaker_names)),
        "by_software": rows(breakdown_by_software(bets)),
    })
