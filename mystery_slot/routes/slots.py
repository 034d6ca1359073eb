from flask import Blueprint, request, jsonify, current_app
from marshmallow import ValidationError

from mystery_slot.exceptions import ValidationException, SimulationLimitException
from mystery_slot.schemas import (
    SpinRequestSchema, SimulateRequestSchema, BaseSpinResultSchema, BonusSpinResultSchema,
    BonusBuyResultSchema, BonusSessionSchema, simulation_schema_for
)
from mystery_slot.utils.bet_ladder import bet_steps
from mystery_slot.utils.game_config_manager import GameConfigManager
from mystery_slot.utils.slot_tester import SimulationHarness

slots_bp = Blueprint('slots', __name__, url_prefix='/api/slots')


def _engine():
    return current_app.extensions['slot_engine']


def _engine_lock():
    return current_app.extensions['slot_engine_lock']


def _load_request(schema):
    data = request.get_json(silent=True) or {}
    try:
        return schema.load(data)
    except ValidationError as err:
        raise ValidationException(status_message="Invalid request data.", details={'errors': err.messages})


@slots_bp.route('/config', methods=['GET'])
def get_slot_config():
    """
    Sanitized game configuration for client-side use: layout, paytable,
    bet ladder and bonus rules. Reel weights are never exposed.
    """
    client_config = GameConfigManager.get_client_config(_engine().config)
    return jsonify({'status': True, 'config': client_config}), 200


@slots_bp.route('/spin', methods=['POST'])
def spin():
    """
    Plays one base spin. The caller debits ``bet`` and credits ``result.win``.
    When three or more Scatters land, a bonus session starts and
    ``result.bonus_trigger`` names its target symbol.
    ``bet_steps`` gives the ladder steps around the bet just played.
    """
    data = _load_request(SpinRequestSchema())
    with _engine_lock():
        result = _engine().spin(data['bet'])
        bonus_active = _engine().bonus_active
    return jsonify({
        'status': True,
        'result': BaseSpinResultSchema().dump(result),
        'bonus_active': bonus_active,
        'bet_steps': bet_steps(result.bet)
    }), 200


@slots_bp.route('/bonus/buy', methods=['POST'])
def buy_bonus():
    data = _load_request(SpinRequestSchema())
    with _engine_lock():
        result = _engine().buy_bonus(data['bet'])
        session = _engine().active_session
        session_data = BonusSessionSchema().dump(session)
    return jsonify({
        'status': True,
        'result': BonusBuyResultSchema().dump(result),
        'session': session_data
    }), 200


@slots_bp.route('/bonus/spin', methods=['POST'])
def bonus_spin():
    """Plays the next free spin. On the last spin ``result.credited`` carries the payout."""
    with _engine_lock():
        result = _engine().bonus_spin()
        bonus_active = _engine().bonus_active
    return jsonify({
        'status': True,
        'result': BonusSpinResultSchema().dump(result),
        'bonus_active': bonus_active
    }), 200


@slots_bp.route('/bonus/cancel', methods=['POST'])
def cancel_bonus():
    with _engine_lock():
        session = _engine().cancel_bonus()
        session_data = BonusSessionSchema().dump(session)
    return jsonify({
        'status': True,
        'status_message': 'Bonus session cancelled. Nothing was credited.',
        'session': session_data
    }), 200


@slots_bp.route('/bonus', methods=['GET'])
def get_bonus_session():
    with _engine_lock():
        session = _engine().active_session
        session_data = BonusSessionSchema().dump(session) if session is not None else {'active': False}
    return jsonify({'status': True, 'session': session_data}), 200


@slots_bp.route('/simulate', methods=['POST'])
def simulate():
    """
    Runs a batch simulation on a private rng stream; the interactive engine
    is not touched. ``spins`` counts bonus rounds in ``bonus`` mode.
    """
    data = _load_request(SimulateRequestSchema())
    limit = current_app.config['MAX_SIMULATION_SPINS']
    if data['spins'] > limit:
        raise SimulationLimitException(
            f"At most {limit} spins per simulation request",
            details={'requested': data['spins'], 'limit': limit}
        )

    seed = data['seed'] if data.get('seed') is not None else current_app.config['SIMULATION_SEED']
    harness = SimulationHarness(config=_engine().config, seed=seed)
    result = harness.run(data['mode'], data['spins'], data['bet'])
    current_app.logger.info(
        f"Simulation served: mode={result.mode} spins={result.spins} seed={seed} RTP={result.rtp_percent:.2f}%"
    )
    return jsonify({'status': True, 'simulation': simulation_schema_for(result).dump(result)}), 200
