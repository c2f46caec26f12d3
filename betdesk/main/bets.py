# betdesk/main/bets.py
# ---------------------------------
# Bet register. Lists are scoped to the viewer; writes go through
# services.bets so profit is always derived server-side.

from flask import jsonify, request
from flask_login import login_required

from ..policy import current_viewer
from ..services import bets as bet_service
from ..services.stats import compute_stats, sort_bets_for_display
from ..utils.helpers import parse_date, payload
from . import main


@main.route("/bets", methods=["GET"], endpoint="bets")
@login_required
def bets():
    viewer = current_viewer()
    start = parse_date(request.args.get("start"), "Data inicial", required=False)
    end = parse_date(request.args.get("end"), "Data final", required=False)
    rows = sort_bets_for_display(bet_service.list_bets(viewer, start=start, end=end))
    return jsonify({
        "bets": [bet_service.bet_to_dict(b) for b in rows],
        # settled-only figures over the whole window, not just the listed rows
        "summary": compute_stats(
            bet_service.period_bets(viewer, start=start, end=end), include_pending=False,
        ).to_dict(),
    })


@main.route("/bets/options", methods=["GET"], endpoint="bet_options")
@login_required
def bet_options():
    return jsonify(bet_service.bet_options(current_viewer()))


@main.route("/bets", methods=["POST"], endpoint="bet_create")
@login_required
def bet_create():
    bet = bet_service.create_bet(current_viewer(), payload())
    return jsonify({"ok": True, "message": "Aposta registrada com sucesso!", "bet": bet_service.bet_to_dict(bet)}), 201


@main.route("/bets/<bet_id>/update", methods=["POST"], endpoint="bet_update")
@login_required
def bet_update(bet_id):
    bet = bet_service.update_bet(current_viewer(), bet_id, payload())
    return jsonify({"ok": True, "bet": bet_service.bet_to_dict(bet)})


@main.route("/bets/<bet_id>/delete", methods=["POST"], endpoint="bet_delete")
@login_required
def bet_delete(bet_id):
    bet_service.delete_bet(current_viewer(), bet_id)
    return jsonify({"ok": True})
