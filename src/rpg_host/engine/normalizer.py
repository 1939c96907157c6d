"""Combatant normalization.

Every combat call starts by rebuilding the combat record from the game
session (the authority for HP/MP maxes, inventory, level and skills) and
the previous combat snapshot. After ``CombatNormalizer.sync`` the
following hold:

* ``0 <= hp <= hp_max``, ``0 <= mp <= mp_max`` and
  ``0 <= movement_remaining <= speed`` for every combatant;
* exactly one weapon is equipped whenever a combatant carries weapons;
* every initiative entry and the current turn id resolve to a combatant;
* initiative is sorted by score, highest first, ties in original order.

``sync`` replaces the PC and enemy models, so callers must look
combatants up again afterwards instead of holding on to old references.
"""

from __future__ import annotations

from collections.abc import Sequence
from uuid import uuid4

from rpg_host.core.constants import (
    DEFAULT_ENEMY_HP,
    DEFAULT_MELEE_RANGE,
    DEFAULT_MOVE_SPEED,
    ENEMY_STATUS_BANDS,
    ENEMY_STATUS_HEALTHY,
    MAX_LEVEL,
    MAX_POOL,
    MAX_POSITION,
    MAX_RANGE,
    MAX_ROUND,
    MIN_POSITION,
    UNARMED_WEAPON_ID,
)
from rpg_host.core.logging import get_logger
from rpg_host.core.utils import clamp, first_set
from rpg_host.engine.dice import DiceRoller
from rpg_host.models.combat import (
    Combatant,
    CombatantPatch,
    CombatRules,
    CombatSession,
    EnemyCombatant,
    EnemySpec,
    InitiativeEntry,
    InitiativeSpec,
    PcCombatant,
    TurnSummary,
    find_enemy,
)
from rpg_host.models.enums import CombatantKind
from rpg_host.models.equipment import (
    default_enemy_weapon,
    ensure_single_equipped_weapon,
    get_inventory_weapons,
    get_skill_catalog,
    normalize_skill,
    normalize_weapon,
    unarmed_weapon,
)
from rpg_host.models.game_state import GameSession


logger = get_logger(__name__)


def enemy_status(hp: int, hp_max: int) -> str:
    """Wound label for an enemy's HP percentage."""
    if hp_max <= 0:
        return ENEMY_STATUS_HEALTHY
    percent = hp / hp_max * 100
    for upper_bound, label in ENEMY_STATUS_BANDS:
        if percent <= upper_bound:
            return label
    return ENEMY_STATUS_HEALTHY


def ensure_turn_state(combatant: Combatant) -> None:
    """Clamp speed and remaining movement."""
    combatant.speed = clamp(combatant.speed, 0, MAX_RANGE)
    combatant.movement_remaining = clamp(combatant.movement_remaining, 0, combatant.speed)


def new_enemy_id() -> str:
    return f"enemy_{uuid4()}"


def _previous(existing: Combatant | None, field_name: str) -> object | None:
    return getattr(existing, field_name) if existing is not None else None


class CombatNormalizer:
    """Rebuild combat records from the game session and previous snapshot.

    Attributes:
        dice: Roller used for initiative rerolls.
    """

    def __init__(self, dice: DiceRoller) -> None:
        self.dice = dice

    # -------------------------------------------------------------------------
    # Combatants
    # -------------------------------------------------------------------------

    def build_pc(
        self,
        game: GameSession,
        existing: PcCombatant | None = None,
        patch: CombatantPatch | None = None,
    ) -> PcCombatant:
        """Build the player combatant.

        Maxes always come from the session pools. Current HP/MP come from
        the patch, then the previous combat copy, then the session pools.

        Args:
            game: The owning game session.
            existing: Previous PC snapshot, if combat was running.
            patch: Explicit changes requested by the caller.

        Returns:
            A fully valid PC combatant.
        """
        patch = patch or CombatantPatch()
        level = clamp(first_set(patch.level, game.pc.level, 1), 1, MAX_LEVEL)

        weapons = get_inventory_weapons(game.inventory)
        if not any(w.id == UNARMED_WEAPON_ID for w in weapons):
            weapons.append(unarmed_weapon())
        weapons = ensure_single_equipped_weapon(
            weapons,
            first_set(patch.equipped_weapon_id, _previous(existing, "equipped_weapon_id")),
        )
        equipped = next((w.id for w in weapons if w.equipped), UNARMED_WEAPON_ID)

        skill_source = patch.skills if patch.skills is not None else game.pc.skills
        catalog = get_skill_catalog(level, skill_source)

        speed = clamp(first_set(patch.speed, _previous(existing, "speed"), DEFAULT_MOVE_SPEED), 0, MAX_RANGE)
        hp_max = clamp(game.hp.max, 1, MAX_POOL)
        mp_max = clamp(game.mp.max, 0, MAX_POOL)

        return PcCombatant(
            id=existing.id if existing is not None else f"pc_{game.game_id}",
            name=game.pc.name or _previous(existing, "name") or "Player",
            hp=clamp(first_set(patch.hp, _previous(existing, "hp"), game.hp.current, hp_max), 0, hp_max),
            hp_max=hp_max,
            mp=clamp(first_set(patch.mp, _previous(existing, "mp"), game.mp.current, mp_max), 0, mp_max),
            mp_max=mp_max,
            level=level,
            position=clamp(
                first_set(patch.position, _previous(existing, "position"), 0),
                MIN_POSITION,
                MAX_POSITION,
            ),
            speed=speed,
            movement_remaining=clamp(
                first_set(patch.movement_remaining, _previous(existing, "movement_remaining"), speed),
                0,
                speed,
            ),
            action_used=bool(first_set(patch.action_used, _previous(existing, "action_used"), False)),
            defending=bool(first_set(patch.defending, _previous(existing, "defending"), False)),
            dodging=bool(first_set(patch.dodging, _previous(existing, "dodging"), False)),
            weapons=weapons,
            equipped_weapon_id=equipped,
            skills=catalog.all_skills,
        )

    def build_enemy(
        self,
        spec: EnemySpec | None,
        existing: EnemyCombatant | None = None,
    ) -> EnemyCombatant | None:
        """Merge an enemy spec with its previous snapshot.

        Args:
            spec: Requested values, or None to rebuild from ``existing`` alone.
            existing: Previous snapshot of the same enemy, if any.

        Returns:
            The enemy, or None when neither side provides a name.
        """
        spec = spec or EnemySpec()
        name = spec.name or _previous(existing, "name")
        if not name:
            return None

        hp_max = clamp(first_set(spec.hp_max, _previous(existing, "hp_max"), DEFAULT_ENEMY_HP), 1, MAX_POOL)
        hp = clamp(first_set(spec.hp, _previous(existing, "hp"), hp_max), 0, hp_max)

        weapon_source = spec.weapons if spec.weapons is not None else _previous(existing, "weapons") or []
        weapons = []
        for weapon_index, raw in enumerate(weapon_source):
            weapon = normalize_weapon(raw, raw.name or f"{name} weapon {weapon_index + 1}", "weapon_enemy")
            if weapon is not None:
                weapons.append(weapon)
        weapons = ensure_single_equipped_weapon(
            weapons or [default_enemy_weapon()],
            first_set(spec.equipped_weapon_id, _previous(existing, "equipped_weapon_id")),
        )
        equipped = next((w.id for w in weapons if w.equipped), weapons[0].id)

        skill_source = spec.skills if spec.skills is not None else _previous(existing, "skills") or []
        skills = []
        for skill_index, raw in enumerate(skill_source):
            skill = normalize_skill(raw, raw.name or f"Skill {skill_index + 1}", "skill_enemy")
            if skill is not None:
                skills.append(skill)

        speed = clamp(first_set(spec.speed, _previous(existing, "speed"), DEFAULT_MOVE_SPEED), 0, MAX_RANGE)
        return EnemyCombatant(
            id=first_set(spec.id, _previous(existing, "id")) or new_enemy_id(),
            name=name,
            hp=hp,
            hp_max=hp_max,
            mp=clamp(first_set(spec.mp, _previous(existing, "mp"), 0), 0, MAX_POOL),
            mp_max=clamp(first_set(spec.mp_max, _previous(existing, "mp_max"), 0), 0, MAX_POOL),
            status=first_set(spec.status, _previous(existing, "status"), enemy_status(hp, hp_max)),
            intent=first_set(spec.intent, _previous(existing, "intent"), ""),
            note=first_set(spec.note, _previous(existing, "note"), ""),
            level=clamp(first_set(spec.level, _previous(existing, "level"), 1), 1, MAX_LEVEL),
            position=clamp(
                first_set(spec.position, _previous(existing, "position"), DEFAULT_MELEE_RANGE),
                MIN_POSITION,
                MAX_POSITION,
            ),
            speed=speed,
            movement_remaining=clamp(
                first_set(spec.movement_remaining, _previous(existing, "movement_remaining"), speed),
                0,
                speed,
            ),
            action_used=bool(first_set(spec.action_used, _previous(existing, "action_used"), False)),
            defending=bool(first_set(spec.defending, _previous(existing, "defending"), False)),
            dodging=bool(first_set(spec.dodging, _previous(existing, "dodging"), False)),
            weapons=weapons,
            equipped_weapon_id=equipped,
            skills=skills,
        )

    # -------------------------------------------------------------------------
    # Initiative
    # -------------------------------------------------------------------------

    def apply_initiative_scores(self, entries: Sequence[InitiativeEntry]) -> list[InitiativeEntry]:
        """Keep caller scores, or reroll the whole list.

        The whole list is rerolled when every score is zero or when any
        entry has no score, even if the other entries were scored.
        """
        if not entries:
            return []
        all_zero = all((entry.score or 0) == 0 for entry in entries)
        has_missing = any(entry.score is None for entry in entries)
        if not all_zero and not has_missing:
            return [entry.model_copy() for entry in entries]
        logger.debug("Rerolling initiative", entries=len(entries), all_zero=all_zero)
        return [entry.model_copy(update={"score": self.dice.roll_initiative()}) for entry in entries]

    def order_initiative(self, entries: Sequence[InitiativeEntry]) -> list[InitiativeEntry]:
        """Score the entries and sort them highest first, keeping ties stable."""
        scored = self.apply_initiative_scores(entries)
        return sorted(scored, key=lambda entry: entry.score or 0, reverse=True)

    def initiative_from_specs(
        self,
        specs: Sequence[InitiativeSpec],
        pc: PcCombatant,
        enemies: Sequence[EnemyCombatant],
    ) -> list[InitiativeEntry]:
        """Resolve caller-supplied initiative entries against the combatants.

        Entries name their combatant by id, or by name (``kind="pc"``
        always resolves to the PC). Unresolvable entries are dropped.
        """
        resolved: list[InitiativeEntry] = []
        for spec in specs:
            if not spec.id and not spec.name:
                continue
            combatant_id = spec.id
            if combatant_id is None:
                if spec.kind == CombatantKind.PC:
                    combatant_id = pc.id
                else:
                    match = find_enemy(enemies, name=spec.name)
                    combatant_id = match.id if match is not None else None
            if combatant_id is None:
                continue
            if combatant_id == pc.id:
                resolved.append(
                    InitiativeEntry(id=pc.id, name=pc.name, kind=CombatantKind.PC, score=spec.score)
                )
                continue
            enemy = find_enemy(enemies, combatant_id)
            resolved.append(
                InitiativeEntry(
                    id=combatant_id,
                    name=enemy.name if enemy is not None else spec.name or "Enemy",
                    kind=CombatantKind.ENEMY,
                    score=spec.score,
                )
            )
        return sorted(resolved, key=lambda entry: entry.score or 0, reverse=True)

    @staticmethod
    def with_missing_entries(
        entries: Sequence[InitiativeEntry],
        combatants: Sequence[Combatant],
    ) -> list[InitiativeEntry]:
        """Append an unscored entry for every combatant not yet listed."""
        result = list(entries)
        listed = {entry.id for entry in result}
        for combatant in combatants:
            if combatant.id not in listed:
                result.append(
                    InitiativeEntry(id=combatant.id, name=combatant.name, kind=combatant.kind)
                )
                listed.add(combatant.id)
        return result

    # -------------------------------------------------------------------------
    # Full pass
    # -------------------------------------------------------------------------

    def sync(self, game: GameSession) -> None:
        """Normalize the game's combat record in place.

        Also mirrors the PC's HP, MP, level and skills back onto the
        session. Does nothing when no combat is active.
        """
        combat = game.combat
        if combat is None:
            return

        combat.round = clamp(combat.round, 1, MAX_ROUND)
        pc = self.build_pc(game, combat.pc)
        enemies: list[EnemyCombatant] = []
        for previous in combat.enemies:
            enemy = self.build_enemy(None, previous)
            if enemy is None:
                continue
            enemy.status = enemy_status(enemy.hp, enemy.hp_max)
            ensure_turn_state(enemy)
            enemies.append(enemy)
        ensure_turn_state(pc)
        combat.pc = pc
        combat.enemies = enemies

        game.hp.set(pc.hp)
        game.mp.set(pc.mp)
        game.pc.level = pc.level
        game.pc.skills = [skill.model_copy() for skill in pc.skills]

        combat.initiative = self._normalize_initiative(combat)
        entry_ids = {entry.id for entry in combat.initiative}
        if combat.current_turn_id not in entry_ids:
            living = next(
                (
                    entry.id
                    for entry in combat.initiative
                    if (ref := combat.find_by_id(entry.id)) is not None and ref.combatant.is_alive
                ),
                None,
            )
            first_id = combat.initiative[0].id if combat.initiative else None
            combat.current_turn_id = living or first_id

        combat.rules = CombatRules()
        combat.turn = self._turn_summary(combat)

    def _normalize_initiative(self, combat: CombatSession) -> list[InitiativeEntry]:
        seen: set[str] = set()
        entries: list[InitiativeEntry] = []
        for entry in combat.initiative:
            if entry.id in seen:
                continue
            ref = combat.find_by_id(entry.id)
            if ref is None:
                continue
            seen.add(entry.id)
            entries.append(
                InitiativeEntry(id=entry.id, name=ref.combatant.name, kind=ref.kind, score=entry.score)
            )
        entries = self.with_missing_entries(entries, [combat.pc, *combat.enemies])
        return self.order_initiative(entries)

    @staticmethod
    def _turn_summary(combat: CombatSession) -> TurnSummary | None:
        ref = combat.current_ref
        if ref is None:
            return None
        actor = ref.combatant
        return TurnSummary(
            actor_id=actor.id,
            actor_name=actor.name,
            kind=ref.kind,
            action_used=actor.action_used,
            movement_remaining=actor.movement_remaining,
            equipped_weapon_id=actor.equipped_weapon_id,
            available_skill_ids=[s.id for s in get_skill_catalog(actor.level, actor.skills).unlocked_skills],
        )


__all__ = [
    "CombatNormalizer",
    "enemy_status",
    "ensure_turn_state",
    "new_enemy_id",
]
