# betdesk/main/dashboard.py
# ---------------------------------
# Landing page data + role-filtered menu.

from datetime import date

from flask import jsonify
from flask_login import login_required

from ..navigation import menu_for
from ..policy import current_viewer
from ..services.bets import period_bets
from ..services.stats import dashboard_sections, positive_units, software_label
from ..utils.format import brl, percent
from . import main


def _section_payload(section, bets) -> dict:
    if section.key is not None:
        bets = [b for b in bets if software_label(b) == section.key]
    stats = section.stats
    return {
        **section.to_dict(),
        "positive_units": float(positive_units(bets)),
        "total_profit_fmt": brl(stats.total_profit),
        "total_volume_fmt": brl(stats.total_volume),
        "roi_fmt": percent(stats.roi),
        "win_rate_fmt": percent(stats.win_rate, 1),
    }


@main.route("/", methods=["GET"], endpoint="dashboard")
@login_required
def dashboard():
    """Month-to-date carousel: "Geral" + one card per software tool."""
    viewer = current_viewer()
    today = date.today()
    bets = period_bets(viewer, start=today.replace(day=1))
    name = viewer.profile.name if viewer.profile else None
    return jsonify({
        "greeting": "Visão geral da operação" if viewer.is_admin else f"Bem-vindo, {name}",
        "is_admin": viewer.is_admin,
        "period_start": today.replace(day=1).isoformat(),
        "sections": [_section_payload(s, bets) for s in dashboard_sections(bets)],
    })


@main.route("/api/menu", methods=["GET"], endpoint="menu")
@login_required
def menu():
    return jsonify({"menu": menu_for(current_viewer())})
