from marshmallow import Schema, fields, post_load, ValidationError
from marshmallow.validate import OneOf, Range

from mystery_slot.utils.reel_config import GLYPHS, ReelConfig, Symbol, WeightedEntry
from mystery_slot.utils.rng import MASK_32
from mystery_slot.utils.slot_tester import BonusSimulationResult, OverallSimulationResult

_SYMBOLS_BY_GLYPH = {glyph: sym for sym, glyph in GLYPHS.items()}


# --- Custom fields ---
class SymbolField(fields.Field):
    """Symbols travel as their upper-case names; lower-case values and glyphs are accepted on input."""

    def _serialize(self, value, attr, obj, **kwargs):
        if value is None:
            return None
        return Symbol(value).name

    def _deserialize(self, value, attr, data, **kwargs):
        if isinstance(value, str):
            if value.upper() in Symbol.__members__:
                return Symbol[value.upper()]
            if value in _SYMBOLS_BY_GLYPH:
                return _SYMBOLS_BY_GLYPH[value]
        raise ValidationError(f"Unknown symbol: {value!r}")


class GridField(fields.Field):
    """``grid[row][col]`` as nested lists of symbol names."""

    def _serialize(self, value, attr, obj, **kwargs):
        if value is None:
            return None
        return [[sym.name for sym in row] for row in value]


class PositionsField(fields.Field):
    """Set of (row, col) cells as a sorted list of ``[row, col]`` pairs."""

    def _serialize(self, value, attr, obj, **kwargs):
        if value is None:
            return []
        return [[row, col] for row, col in sorted(value)]


# --- Request schemas ---
class SpinRequestSchema(Schema):
    # Range checks live in the engine so bad bets surface as INVALID_BET.
    bet = fields.Float(required=True, allow_nan=False)


class SimulateRequestSchema(Schema):
    mode = fields.Str(required=True, validate=OneOf(['base', 'bonus', 'overall']))
    spins = fields.Int(required=True, strict=True, validate=Range(min=1, error="spins must be at least 1"))
    bet = fields.Float(load_default=1.0, allow_nan=False)
    seed = fields.Int(load_default=None, allow_none=True, strict=True,
                      validate=Range(min=0, max=MASK_32, error="seed must be a 32-bit unsigned integer"))


# --- Engine result schemas ---
class WinPartSchema(Schema):
    symbol = SymbolField()
    length = fields.Int()
    ways = fields.Int()
    pay = fields.Float()
    amount = fields.Float()
    positions = PositionsField()
    label = fields.Str()


class EvalResultSchema(Schema):
    total = fields.Float()
    parts = fields.List(fields.Nested(WinPartSchema))
    breakdown = fields.List(fields.Str())
    positions = PositionsField()


class BurstSchema(Schema):
    triggered = fields.Bool()
    # Walk order is kept: it is the reveal order.
    cluster = fields.Function(lambda burst: [[row, col] for row, col in burst.cluster])
    mystery_grid = GridField()
    single_reveal = SymbolField(allow_none=True)


class BaseSpinResultSchema(Schema):
    bet = fields.Float()
    win = fields.Float()
    raw_grid = GridField()
    grid = GridField()
    burst = fields.Nested(BurstSchema)
    evaluation = fields.Nested(EvalResultSchema)
    scatter_count = fields.Int()
    bonus_triggered = fields.Bool()
    bonus_trigger = SymbolField(allow_none=True)


class BonusSpinResultSchema(Schema):
    spin_number = fields.Int()
    raw_grid = GridField()
    new_stickies = PositionsField()
    sticky = PositionsField()
    reveal_symbol = SymbolField()
    grid = GridField()
    evaluation = fields.Nested(EvalResultSchema)
    win = fields.Float()
    running_total = fields.Float()
    spins_remaining = fields.Int()
    ended = fields.Bool()
    credited = fields.Float(allow_none=True)


class BonusBuyResultSchema(Schema):
    bet = fields.Float()
    cost = fields.Float()
    target = SymbolField()


class BonusSessionSchema(Schema):
    active = fields.Bool()
    target = SymbolField()
    bet = fields.Float()
    from_buy = fields.Bool()
    state = fields.Function(lambda session: session.state.value)
    spins_remaining = fields.Int()
    spins_played = fields.Int()
    running_total = fields.Float()
    sticky = PositionsField()
    sticky_count_by_col = fields.List(fields.Int())
    target_column_weights = fields.Method("get_target_column_weights")

    def get_target_column_weights(self, session):
        return [session.target_column_weight(col) for col in range(session.config.cols)]


# --- Simulation schemas ---
class SimulationResultSchema(Schema):
    mode = fields.Str()
    seed = fields.Int(allow_none=True)
    bet = fields.Float()
    spins = fields.Int()
    total_wagered = fields.Float()
    total_won = fields.Float()
    hit_count = fields.Int()
    hit_rate = fields.Float()
    rtp_percent = fields.Float()
    max_win = fields.Float()
    volatility_index = fields.Float()
    theoretical_rtp_percent = fields.Float()
    wins_by_multiplier = fields.Dict(keys=fields.Str(), values=fields.Int())


class TargetStatsSchema(Schema):
    rounds = fields.Int()
    total_win = fields.Float()
    avg_win = fields.Float()
    rtp_percent = fields.Float()


class BonusSimulationResultSchema(SimulationResultSchema):
    rounds = fields.Int()
    cost_per_round = fields.Float()
    avg_win = fields.Float()
    per_target = fields.Dict(keys=SymbolField(), values=fields.Nested(TargetStatsSchema))


class OverallSimulationResultSchema(SimulationResultSchema):
    base_win = fields.Float()
    bonus_win = fields.Float()
    bonus_triggers = fields.Int()
    trigger_rate = fields.Float()
    base_rtp_percent = fields.Float()
    bonus_rtp_percent = fields.Float()
    avg_bonus_win = fields.Float()


def simulation_schema_for(result):
    if isinstance(result, BonusSimulationResult):
        return BonusSimulationResultSchema()
    if isinstance(result, OverallSimulationResult):
        return OverallSimulationResultSchema()
    return SimulationResultSchema()


# --- Tuning file schema ---
class WeightedEntrySchema(Schema):
    symbol = SymbolField(required=True)
    weight = fields.Float(required=True, allow_nan=False)

    @post_load
    def make_entry(self, data, **kwargs):
        return WeightedEntry(data['symbol'], data['weight'])


def _symbol_table(**kwargs):
    return fields.Dict(keys=SymbolField(), values=fields.Float(allow_nan=False), **kwargs)


def _reel_set(**kwargs):
    return fields.List(fields.List(fields.Nested(WeightedEntrySchema)), **kwargs)


class ReelConfigSchema(Schema):
    """
    JSON shape of a tuning file. Every key is optional on load; missing keys
    keep the built-in value. Load only parses: ``validate_reel_config`` checks
    the resulting values.
    """
    rows = fields.Int(strict=True)
    cols = fields.Int(strict=True)
    base_pool = _reel_set()
    bonus_pool = _reel_set()
    paytable = fields.Dict(
        keys=SymbolField(),
        values=fields.Dict(keys=fields.Int(), values=fields.Float(allow_nan=False)),
    )

    free_spin_count = fields.Int(strict=True)
    bonus_column_scales = fields.List(fields.Float(allow_nan=False))
    on_stick_taper = fields.Float(allow_nan=False)
    per_extra_sticky_decay = fields.Float(allow_nan=False)
    target_pick_multipliers = _symbol_table()
    bonus_reveal_weights = _symbol_table()
    min_scatters_to_trigger = fields.Int(strict=True)
    bonus_buy_cost_multiplier = fields.Float(allow_nan=False)

    burst_chance = fields.Float(allow_nan=False)
    burst_size_min = fields.Int(strict=True)
    burst_size_max = fields.Int(strict=True)
    col0_force_prob = fields.Float(allow_nan=False)
    col1_force_prob = fields.Float(allow_nan=False)
    base_reveal_weights = _symbol_table()
    early_column_alignment = fields.List(fields.Float(allow_nan=False))
    same_row_boosts = fields.List(fields.Float(allow_nan=False))
    cluster_single_reveal_prob = fields.Float(allow_nan=False)

    @post_load
    def make_config(self, data, **kwargs):
        for key in ('base_pool', 'bonus_pool'):
            if key in data:
                data[key] = tuple(tuple(column) for column in data[key])
        for key in ('bonus_column_scales', 'early_column_alignment', 'same_row_boosts'):
            if key in data:
                data[key] = tuple(data[key])
        return ReelConfig(**data)
