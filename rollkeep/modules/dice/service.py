"""
Roll resolution pipeline.

A request flows through

    load record -> assemble pool -> spend resources -> normalize
    -> build expression -> roll -> evaluate -> deliver

as a chain of Result.then() steps. Each step only sees what the previous one
produced. Spend grants are folded into the pool at normalization, so the
modifier label only shows the caller's own modifiers, and a refused spend
stops the chain before anything is rolled. Spends are
never undone: a roller or delivery failure after a spend leaves the points
spent.
"""

import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Optional, Tuple

from ...core.models import Character
from ...core.paths import get_int
from ...core.result import Result, ErrorCode
from ..resources.ledger import SpellSlotLedger, SpendReceipt, VoidPointLedger
from .expression import Expression, build_expression
from .initiative import initiative_expression
from .outcome import Outcome, TargetNumber, build_tn_label, evaluate, outcome_label
from .pool import NormalizationRules, NormalizedRoll, ensure_minimum_pool, normalize
from .requests import AssembledPool, RingRoll, RollRequest, assemble_pool
from .roller import DiceRoller, RollResult
from .targets import NO_TARGET_INFO, WOUND_PENALTY_PATH, TargetInfo, resolve_target

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RollContext:
    """Everything known about a request so far; filled in step by step."""
    request: RollRequest
    character: Optional[Character]
    pool: AssembledPool
    target: TargetInfo = NO_TARGET_INFO
    spends: Tuple[SpendReceipt, ...] = ()
    normalized: Optional[NormalizedRoll] = None
    expression: Optional[Expression] = None
    roll: Optional[RollResult] = None

    @property
    def data(self) -> Dict[str, Any]:
        return self.character.data if self.character else {}

    @property
    def granted_pool(self) -> AssembledPool:
        """The assembled pool with every spend grant folded in."""
        pool = self.pool
        for receipt in self.spends:
            pool = pool.with_dice(receipt.grant.roll, receipt.grant.keep)
        return pool


@dataclass(frozen=True)
class RollOutcome:
    """A resolved roll, ready for presentation."""
    character_id: Optional[str]
    label: str
    expression: Expression
    normalized: NormalizedRoll
    roll: RollResult
    tn: Optional[TargetNumber]
    outcome: Outcome
    roll_type: Optional[str] = None
    spends: Tuple[SpendReceipt, ...] = ()

    @property
    def total(self) -> int:
        return self.roll.total

    @property
    def outcome_label(self) -> Optional[str]:
        return outcome_label(self.outcome, self.roll_type)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'character_id': self.character_id,
            'label': self.label,
            'expression': str(self.expression),
            'pool': self.normalized.to_dict(),
            'total': self.roll.total,
            'breakdown': self.roll.get_breakdown(),
            'effective_tn': self.tn.effective if self.tn else None,
            'raises': self.tn.raises if self.tn else 0,
            'outcome': self.outcome.to_dict(),
            'outcome_label': self.outcome_label,
            'roll_type': self.roll_type,
            'spends': [
                {'path': s.path, 'remaining': s.pool.current, 'grant': s.grant.to_dict()}
                for s in self.spends
            ]
        }


class RollService:
    """
    Resolves roll requests against character records.

    Attributes:
        engine: RecordEngine holding the characters
        roller: DiceRoller (or anything with roll(expression, metadata))
        rules: House rules handed to normalize()
        allow_npc_void: Whether NPC records may spend void points
        minimum_pool_fallback: Clamp empty pools to 1k1 instead of failing
        deliver: Optional callback receiving each RollOutcome; an exception
            from it fails the request with ROLLER_UNAVAILABLE
    """

    def __init__(self, engine, roller: Optional[DiceRoller] = None,
                 rules: Optional[NormalizationRules] = None,
                 allow_npc_void: bool = False,
                 minimum_pool_fallback: bool = True,
                 deliver: Optional[Callable[[RollOutcome], Any]] = None):
        self.engine = engine
        self.roller = roller or DiceRoller()
        self.rules = rules or NormalizationRules()
        self.allow_npc_void = allow_npc_void
        self.minimum_pool_fallback = minimum_pool_fallback
        self.deliver = deliver
        self.void_points = VoidPointLedger(engine)
        self.spell_slots = SpellSlotLedger(engine)

    def resolve(self, request: RollRequest, character_id: Optional[str] = None,
                actor_id: Optional[str] = None) -> Result:
        """
        Resolve a roll request.

        Args:
            request: What to roll
            character_id: Whose record supplies ranks, bonuses and resources;
                          optional for explicit pools that spend nothing
            actor_id: Who asked (recorded on spend events)

        Returns:
            Result with a RollOutcome
        """
        return (self._load(character_id)
                .then(lambda character: self._assemble(request, character))
                .then(lambda ctx: self._spend(ctx, actor_id))
                .then(self._normalize)
                .then(self._build)
                .then(self._roll)
                .then(self._evaluate)
                .then(self._deliver))

    # ========== Pipeline steps ==========

    def _load(self, character_id: Optional[str]) -> Result:
        if character_id is None:
            return Result.ok(None)
        return self.engine.require_character(character_id)

    def _assemble(self, request: RollRequest, character: Optional[Character]) -> Result:
        try:
            pool = assemble_pool(request, character.data if character else {})
        except ValueError as e:
            return Result.fail(str(e), ErrorCode.INVALID_INPUT)

        options = request.options
        target = resolve_target(self.engine, options.target_id, options.roll_type)
        return Result.ok(RollContext(request=request, character=character,
                                     pool=pool, target=target))

    def _spend(self, ctx: RollContext, actor_id: Optional[str]) -> Result:
        request = ctx.request
        wants_void = request.options.spend_void
        wants_slots = isinstance(request, RingRoll) and (request.spell_slot or request.void_slot)

        if not (wants_void or wants_slots):
            return Result.ok(ctx)

        if ctx.character is None:
            return Result.fail("Spending resources requires a character",
                               ErrorCode.INVALID_INPUT)

        character_id = ctx.character.id
        if wants_void and ctx.data.get('type') == 'npc' and not self.allow_npc_void:
            return Result.fail("NPCs cannot spend void points",
                               ErrorCode.OPERATION_NOT_ALLOWED)

        spends = []
        # Each spend commits on its own; a later refusal leaves earlier ones spent
        if wants_void:
            result = self.void_points.spend(character_id, actor_id)
            if not result.success:
                return result
            spends.append(result.data)

        if wants_slots and request.spell_slot:
            result = self.spell_slots.spend(character_id, request.ring, actor_id)
            if not result.success:
                return result
            spends.append(result.data)

        if wants_slots and request.void_slot:
            result = self.spell_slots.spend_void_slot(character_id, actor_id)
            if not result.success:
                return result
            spends.append(result.data)

        return Result.ok(replace(ctx, spends=tuple(spends)))

    def _normalize(self, ctx: RollContext) -> Result:
        pool = ctx.granted_pool
        roll_dice, keep_dice = pool.roll_dice, pool.keep_dice

        if roll_dice < 1 or keep_dice < 1:
            if not self.minimum_pool_fallback:
                return Result.fail(
                    f"Pool {roll_dice}k{keep_dice} has no dice to roll or keep",
                    ErrorCode.INVALID_POOL
                )
            logger.warning(f"Pool {roll_dice}k{keep_dice} raised to the 1k1 minimum")
            roll_dice, keep_dice = ensure_minimum_pool(roll_dice, keep_dice)

        normalized = normalize(roll_dice, keep_dice, pool.total_mod, self.rules)
        return Result.ok(replace(ctx, normalized=normalized))

    def _build(self, ctx: RollContext) -> Result:
        expression = build_expression(ctx.normalized.pool, ctx.normalized.bonus,
                                      ctx.request.options.flags)
        return Result.ok(replace(ctx, expression=expression))

    def _roll(self, ctx: RollContext) -> Result:
        metadata = {
            'character_id': ctx.character.id if ctx.character else None,
            'roll_type': ctx.request.options.roll_type,
            'label': ctx.pool.label
        }
        try:
            roll = self.roller.roll(ctx.expression, metadata=metadata)
        except Exception as e:
            logger.error(f"Roller failed for '{ctx.expression}': {e}", exc_info=True)
            return Result.fail(f"Roller unavailable: {e}", ErrorCode.ROLLER_UNAVAILABLE)
        return Result.ok(replace(ctx, roll=roll))

    def _evaluate(self, ctx: RollContext) -> Result:
        options = ctx.request.options

        base_tn = options.tn
        if options.roll_type == 'attack' and base_tn == 0 and ctx.target.auto_tn > 0:
            base_tn = ctx.target.auto_tn

        tn = None
        if base_tn or options.raises:
            tn = TargetNumber(
                base=base_tn,
                raises=options.raises,
                wound_penalty=get_int(ctx.data, WOUND_PENALTY_PATH),
                apply_penalty=options.apply_wound_penalty
            )

        return Result.ok(RollOutcome(
            character_id=ctx.character.id if ctx.character else None,
            label=self._label(ctx, tn),
            expression=ctx.expression,
            normalized=ctx.normalized,
            roll=ctx.roll,
            tn=tn,
            outcome=evaluate(ctx.roll.total, tn),
            roll_type=options.roll_type,
            spends=ctx.spends
        ))

    def _deliver(self, outcome: RollOutcome) -> Result:
        if self.deliver is not None:
            try:
                self.deliver(outcome)
            except Exception as e:
                logger.error(f"Delivering roll '{outcome.label}' failed: {e}", exc_info=True)
                return Result.fail(f"Roll result could not be delivered: {e}",
                                   ErrorCode.ROLLER_UNAVAILABLE)
        return Result.ok(outcome)

    @staticmethod
    def _label(ctx: RollContext, tn: Optional[TargetNumber]) -> str:
        options = ctx.request.options
        label = ctx.pool.label
        for receipt in ctx.spends:
            label += receipt.label
        if options.emphasis:
            label += " (Emphasis)"
        if options.unskilled:
            label += " (Unskilled)"
        label += ctx.pool.modifier_label()
        label += ctx.target.label
        if tn is not None:
            label += build_tn_label(tn.effective, tn.raises)
        return label

    # ========== Initiative ==========

    def initiative(self, character_id: str) -> Result:
        """
        Roll initiative for a character.

        Returns:
            Result with {'character_id', 'expression', 'total', 'breakdown'}
        """
        found = self.engine.require_character(character_id)
        if not found.success:
            return found

        expression = initiative_expression(found.data.data, self.rules)
        try:
            roll = self.roller.roll(expression, metadata={'character_id': character_id,
                                                          'roll_type': 'initiative'})
        except Exception as e:
            logger.error(f"Initiative roll failed for {character_id}: {e}", exc_info=True)
            return Result.fail(f"Roller unavailable: {e}", ErrorCode.ROLLER_UNAVAILABLE)

        return Result.ok({
            'character_id': character_id,
            'expression': str(expression),
            'total': roll.total,
            'breakdown': roll.get_breakdown()
        })


__all__ = ['RollContext', 'RollOutcome', 'RollService']
