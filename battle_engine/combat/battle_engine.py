"""
Battle engine: the turn state machine.

``BattleEngine`` owns no battle state. Each entry point takes a
``BattleState`` and returns a new one, leaving its input untouched; invalid
requests return the input itself. A battle moves from the player's turn to
the enemies' turn and back until one side falls.
"""

import random
from collections.abc import Sequence

from catchery import log_warning
from pydantic import BaseModel, Field

from battle_engine.combat.battle_state import BattleState
from battle_engine.combat.cooldowns import get_cooldown, set_cooldown
from battle_engine.combat.damage import (
    HitResult,
    calc_damage,
    can_crit,
    clamp_hp,
    clamp_mp,
    resolve_hit,
)
from battle_engine.combat.enemy_ai import perform_enemy_action
from battle_engine.combat.turn_start import start_unit_turn
from battle_engine.core.abilities import AbilitySpec, Item, Spell, SummonSpec
from battle_engine.core.constants import (
    ALLOCATABLE_STATS,
    DEFAULT_ENEMY_ID,
    AbilityKind,
    BaseAttribute,
    BattleResult,
    DamageType,
    ExpScaling,
    ToastSeverity,
    Turn,
)
from battle_engine.core.content import ContentRepository
from battle_engine.core.events import (
    BattleOutcomeEvent,
    CollectEvent,
    GameEvents,
    ToastEvent,
)
from battle_engine.core.logging import log_debug, log_info
from battle_engine.effects.status_system import (
    apply_statuses,
    decay_statuses,
    recompute_derived,
)
from battle_engine.entities.enemy_builder import EnemyBuilder, EnemyRef, ScalingContext
from battle_engine.entities.entity import Enemy, Entity
from battle_engine.entities.player import DerivationRules, EquipmentResolver, build_player
from battle_engine.progression import PlayerProgress, apply_exp_gain


class SpellView(BaseModel):
    """A known spell with its remaining cooldown."""

    spell: Spell
    cooldown_remaining: int = 0


class ItemView(BaseModel):
    """An inventory stack with its remaining cooldown."""

    item: Item
    qty: int = Field(ge=1)
    cooldown_remaining: int = 0


class BattleEngine:
    """
    Resolves battles between the player and a group of enemies.

    Args:
        content (ContentRepository | None): Catalogs; the packaged data when
            omitted.
        events (GameEvents | None): Notification bus.
        rng (random.Random | None): Source of critical hit rolls.
        exp_multiplier (float): Dungeon EXP multiplier for built enemies.
        exp_mode (ExpScaling): Growth of EXP rewards with enemy level.

    """

    def __init__(
        self,
        content: ContentRepository | None = None,
        events: GameEvents | None = None,
        rng: random.Random | None = None,
        exp_multiplier: float = 1.0,
        exp_mode: ExpScaling = ExpScaling.EXPONENTIAL,
    ) -> None:
        self.content = content or ContentRepository()
        self.events = events or GameEvents()
        self.rng = rng or random.Random()
        self.exp_multiplier = exp_multiplier
        self.exp_mode = exp_mode
        self.enemy_builder = EnemyBuilder(self.content.enemies)
        self.rules = DerivationRules(
            equipment=EquipmentResolver.from_items(self.content.items)
        )

    # ============================================================
    # BATTLE SETUP
    # ============================================================

    def start(
        self,
        enemy_ids: EnemyRef | Sequence[EnemyRef] | None = None,
        progress: PlayerProgress | None = None,
        dungeon_level: int | None = None,
    ) -> BattleState:
        """
        Starts a battle.

        Args:
            enemy_ids: Enemy references; the default enemy when empty.
            progress (PlayerProgress | None): Saved progression of the player;
                the player template is used when missing.
            dungeon_level (int | None): Level forced on every enemy.

        Returns:
            BattleState: The state at the player's first turn.

        """
        scaling = ScalingContext(
            dungeon_level=dungeon_level,
            exp_multiplier=self.exp_multiplier,
            exp_mode=self.exp_mode,
        )
        if not enemy_ids:
            enemy_ids = [DEFAULT_ENEMY_ID]
        elif isinstance(enemy_ids, str) or not isinstance(enemy_ids, Sequence):
            enemy_ids = [enemy_ids]
        player = build_player(self.content.player, progress, self.rules)
        enemies = self.enemy_builder.build(list(enemy_ids), scaling, taken={player.id})
        state = BattleState(
            player=player,
            enemies=enemies,
            scaling=scaling,
            rules=self.rules,
        )
        primary = enemies[0].name if enemies else "enemy"
        state.add_log(f"A wild {primary} appears! {player.name} prepares for battle.")
        log_info(
            "Battle started",
            {"enemies": [e.id for e in enemies], "dungeon_level": dungeon_level},
        )
        self._begin_player_turn(state, announce=False)
        return state

    def reset(
        self,
        enemy_ids: EnemyRef | Sequence[EnemyRef] | None = None,
        progress: PlayerProgress | None = None,
        dungeon_level: int | None = None,
    ) -> BattleState:
        """Starts over with a fresh battle."""
        return self.start(enemy_ids, progress, dungeon_level)

    # ============================================================
    # QUERIES
    # ============================================================

    @staticmethod
    def can_player_act(state: BattleState) -> bool:
        return not state.over and state.turn == Turn.PLAYER

    def can_cast(self, state: BattleState, spell_id: str) -> bool:
        """Whether the player could cast a spell right now."""
        spell = self.content.find_spell(spell_id)
        return spell is not None and self._cast_blocker(state, spell) is None

    def can_use_item(self, state: BattleState, item_id: str) -> bool:
        """Whether the player could use an item right now."""
        item = self.content.items.get(item_id)
        return item is not None and self._item_blocker(state, item) is None

    def get_spells(self, state: BattleState) -> list[SpellView]:
        """The player's known spells with their remaining cooldowns."""
        views = []
        for spell_id in state.player.spells:
            spell = self.content.find_spell(spell_id)
            if spell is None:
                continue
            remaining = get_cooldown(state.player, spell.id)
            views.append(SpellView(spell=spell, cooldown_remaining=remaining))
        return views

    def get_items(self, state: BattleState) -> list[ItemView]:
        """The player's inventory, sorted by item name."""
        views = []
        for item_id, qty in state.player.inventory.items():
            item = self.content.items.get(item_id)
            if item is None or qty <= 0:
                continue
            remaining = get_cooldown(state.player, item.id)
            views.append(ItemView(item=item, qty=qty, cooldown_remaining=remaining))
        return sorted(views, key=lambda view: view.item.name)

    # ============================================================
    # PLAYER ACTIONS
    # ============================================================

    def player_attack(self, state: BattleState, target_index: int | None = None) -> BattleState:
        """
        Basic physical attack against one enemy.

        Args:
            state (BattleState): The current state.
            target_index (int | None): Index into ``state.enemies``; the first
                living enemy when omitted.

        Returns:
            BattleState: The new state, or ``state`` if the attack is invalid.

        """
        if not self.can_player_act(state):
            return state
        position = self._target_position(state, target_index)
        if position is None:
            return state

        s = state.fork()
        player = s.player
        target = s.enemies[position]
        hit = resolve_hit(
            calc_damage(player.atk, target.defense),
            target,
            element=DamageType.PHYSICAL.value,
            crit_stats=player.effective_stats,
            allow_crit=True,
            rng=self.rng,
        )
        self._hit_enemy(
            s,
            target,
            hit,
            f"{player.name} attacks {target.name} for {hit.damage} physical damage",
        )
        self._finish_player_action(s)
        return s

    def player_cast(
        self, state: BattleState, spell_id: str, target_index: int | None = None
    ) -> BattleState:
        """
        Casts a spell.

        Damage spells hit one enemy, or every living enemy for area spells;
        heal spells restore the player. Status effects land on whoever was
        affected and summon directives are resolved once per cast.

        Args:
            state (BattleState): The current state.
            spell_id (str): Id of the spell (``_`` and ``-`` are interchangeable).
            target_index (int | None): Target of a single-target damage spell.

        Returns:
            BattleState: The new state, or ``state`` if the cast is invalid.

        """
        if not self.can_player_act(state):
            return state
        spell = self.content.find_spell(spell_id)
        if spell is None:
            log_warning(f"Unknown spell '{spell_id}'.", {"spell_id": spell_id})
            return state
        blocker = self._cast_blocker(state, spell)
        if blocker is not None:
            log_warning(
                f"Cannot cast {spell.name}: {blocker}.",
                {"spell_id": spell.id, "mp": state.player.mp, "hp": state.player.hp},
            )
            return state
        position = None
        if spell.kind == AbilityKind.DAMAGE and not spell.is_aoe:
            position = self._target_position(state, target_index)
            if position is None:
                return state

        s = state.fork()
        player = s.player
        player.mp = clamp_mp(player.mp - spell.cost, player.max_mp)
        s.add_log(
            f"{player.name} spends {spell.cost} MP (MP {player.mp}/{player.max_mp})."
        )
        set_cooldown(player, spell.id, spell.cooldown)

        if spell.kind == AbilityKind.DAMAGE:
            targets = s.living_enemies() if spell.is_aoe else [s.enemies[position]]
            for target in targets:
                self._spell_hit(s, spell, target)
        elif spell.kind == AbilityKind.HEAL:
            before = player.hp
            player.hp = clamp_hp(before + spell.heal_amount, player.max_hp)
            s.add_log(
                f"{player.name} casts {spell.name} and heals {player.hp - before}. "
                f"({player.name} HP {player.hp}/{player.max_hp})"
            )
            apply_statuses(player, spell.status_effects, spell.id, s.rules)
        elif spell.kind == AbilityKind.MANA:
            self._restore_mana(s, spell)
            apply_statuses(player, spell.status_effects, spell.id, s.rules)

        for directive in spell.summon_effects:
            self._summon(s, player, directive)
        self._finish_player_action(s)
        return s

    def player_use_item(
        self, state: BattleState, item_id: str, target_index: int | None = None
    ) -> BattleState:
        """
        Uses a consumable from the inventory.

        Args:
            state (BattleState): The current state.
            item_id (str): Id of the item.
            target_index (int | None): Target of a single-target damage item.

        Returns:
            BattleState: The new state, or ``state`` if the use is invalid.

        """
        if not self.can_player_act(state):
            return state
        item = self.content.get_item(item_id)
        if item is None:
            return state
        blocker = self._item_blocker(state, item)
        if blocker is not None:
            log_warning(
                f"Cannot use {item.name}: {blocker}.",
                {"item_id": item.id, "qty": state.player.inventory.get(item.id, 0)},
            )
            return state
        position = None
        if item.kind == AbilityKind.DAMAGE and not item.is_aoe:
            position = self._target_position(state, target_index)
            if position is None:
                return state

        s = state.fork()
        player = s.player
        remaining = player.inventory.get(item.id, 0) - 1
        if remaining > 0:
            player.inventory[item.id] = remaining
        else:
            player.inventory.pop(item.id, None)
        set_cooldown(player, item.id, item.cooldown)
        s.add_log(f"{player.name} uses {item.name}.")

        if item.kind == AbilityKind.HEAL:
            before = player.hp
            player.hp = clamp_hp(before + item.heal_amount, player.max_hp)
            s.add_log(
                f"Restored {player.hp - before} HP. "
                f"({player.name} HP {player.hp}/{player.max_hp})"
            )
            apply_statuses(player, item.status_effects, item.id, s.rules)
        elif item.kind == AbilityKind.MANA:
            self._restore_mana(s, item)
            apply_statuses(player, item.status_effects, item.id, s.rules)
        elif item.kind == AbilityKind.DAMAGE:
            targets = s.living_enemies() if item.is_aoe else [s.enemies[position]]
            for target in targets:
                hit = resolve_hit(
                    max(1, item.damage),
                    target,
                    element=item.element or DamageType.PHYSICAL.value,
                    power_mult=item.power_mult,
                    crit_stats=player.effective_stats,
                    allow_crit=can_crit(item),
                    rng=self.rng,
                )
                self._hit_enemy(
                    s,
                    target,
                    hit,
                    f"{item.name} hits {target.name} for {hit.damage} damage",
                    item,
                )

        for directive in item.summon_effects:
            self._summon(s, player, directive)
        self._finish_player_action(s)
        return s

    def allocate_stat(self, state: BattleState, stat_key: str | BaseAttribute) -> BattleState:
        """
        Spends one unspent point on STR, DEX, MAG or CON.

        Derived stats are recomputed; current hp and mp never rise. The
        player keeps the turn.
        """
        if not self.can_player_act(state):
            return state
        stat = self._allocatable_stat(stat_key)
        if stat is None:
            log_warning(
                f"Cannot allocate points to '{stat_key}'.",
                {"stat_key": stat_key, "allowed": [str(a) for a in ALLOCATABLE_STATS]},
            )
            return state
        if state.player.unspent_points <= 0:
            log_debug("No unspent points to allocate", {"stat": str(stat)})
            return state

        s = state.fork()
        player = s.player
        player.unspent_points -= 1
        player.stats[stat] = player.stats.get(stat, 0) + 1
        recompute_derived(player, s.rules)
        s.add_log(f"Allocated +1 {stat}.")
        return s

    # ============================================================
    # ENEMY TURN
    # ============================================================

    def enemy_act(self, state: BattleState) -> BattleState:
        """
        Runs the enemies' turn, then starts the player's next turn.

        Every living enemy present at the start acts once, in list order.
        Enemies summoned during the turn wait until the next one.

        Args:
            state (BattleState): A state where it is the enemies' turn.

        Returns:
            BattleState: The new state, or ``state`` if it is not the
            enemies' turn.

        """
        if state.over or state.turn != Turn.ENEMY:
            return state

        s = state.fork()
        for enemy in s.enemies:
            enemy.just_summoned = False

        index = 0
        while index < len(s.enemies):
            enemy = s.enemies[index]
            index += 1
            if not enemy.is_alive or enemy.just_summoned:
                continue
            start = start_unit_turn(s, enemy)
            if start.died:
                self._process_death(s, enemy)
                continue
            if start.skipped:
                decay_statuses(enemy, s.rules)
                continue
            perform_enemy_action(s, enemy, self.content.spells, self._summon)
            decay_statuses(enemy, s.rules)
            if not s.player.is_alive:
                break

        s.round += 1
        self._prune(s)
        self._check_end(s)
        if not s.over:
            self._begin_player_turn(s, announce=True)
        return s

    # ============================================================
    # DEATH HANDLING
    # ============================================================

    def on_enemy_death(self, state: BattleState, enemy_id: str) -> BattleState:
        """
        Processes the death of an enemy: EXP, level-ups and loot.

        Processing happens at most once per enemy.

        Args:
            state (BattleState): The current state.
            enemy_id (str): Runtime id of the fallen enemy.

        Returns:
            BattleState: The new state, or ``state`` if there is nothing to
            process.

        """
        position = next(
            (i for i, e in enumerate(state.enemies) if e.id == enemy_id), None
        )
        if position is None or state.enemies[position].death_processed:
            return state
        s = state.fork()
        self._process_death(s, s.enemies[position])
        return s

    def _process_death(self, s: BattleState, enemy: Enemy) -> None:
        if enemy.death_processed:
            return
        enemy.death_processed = True
        s.add_log(f"{enemy.name} falls!")

        if enemy.exp_reward > 0:
            self._grant_exp(s, enemy.exp_reward)
            self._toast(f"+{enemy.exp_reward} EXP", ToastSeverity.SUCCESS)

        player = s.player
        for drop in enemy.drops:
            player.inventory[drop.id] = player.inventory.get(drop.id, 0) + drop.qty
            self.events.emit(CollectEvent(item_id=drop.id, qty=drop.qty))
            item = self.content.items.get(drop.id)
            item_name = item.name if item else drop.id
            s.add_log(f"{enemy.name} dropped {drop.qty} × {item_name}.")
            self._toast(f"Loot: {drop.qty}× {item_name}", ToastSeverity.INFO)

    def _grant_exp(self, s: BattleState, amount: int) -> None:
        player = s.player
        s.add_log(f"Gained {amount} EXP.")
        gain = apply_exp_gain(player.to_progress(), amount, self.content.level_rewards)
        progress = gain.progress
        player.level = progress.level
        player.exp = progress.exp
        player.unspent_points = progress.unspent_points
        player.spells = list(progress.spells)
        player.pending_spell_choices = list(progress.pending_spell_choices)
        recompute_derived(player, s.rules)
        if gain.levels_gained:
            player.hp = player.max_hp
            player.mp = player.max_mp
            s.add_log(f"Level Up! You are now level {player.level}.")
            self._toast(f"Level {player.level} reached!", ToastSeverity.SUCCESS)

    def _prune(self, s: BattleState) -> None:
        for enemy in s.enemies:
            if not enemy.is_alive and not enemy.death_processed:
                self._process_death(s, enemy)
        s.enemies = s.living_enemies()

    def _check_end(self, s: BattleState) -> None:
        if s.over:
            return
        player_dead = not s.player.is_alive
        enemies_alive = bool(s.living_enemies())
        if not enemies_alive:
            s.over = True
            s.result = BattleResult.WIN
            s.add_log("Both sides fall, but you prevail!" if player_dead else "Victory!")
        elif player_dead:
            s.over = True
            s.result = BattleResult.LOSS
            s.add_log("Defeat...")
        else:
            return
        log_info(
            "Battle over",
            {"result": str(s.result), "rounds": s.round, "level": s.player.level},
        )
        self.events.emit(
            BattleOutcomeEvent(
                result=s.result,
                rounds=s.round,
                player_level=s.player.level,
            )
        )

    # ============================================================
    # SUMMONS
    # ============================================================

    def _summon(self, s: BattleState, source: Entity, spec: SummonSpec) -> None:
        """Builds the creatures of a summon directive and appends them."""
        if isinstance(source, Enemy):
            base_level = source.scaled_level or 1
        else:
            base_level = source.level
        level = None
        if spec.level is not None:
            level = max(1, spec.level)
        elif spec.level_offset is not None:
            level = max(1, base_level + spec.level_offset)
        ref: EnemyRef = spec.id if level is None else {"base_id": spec.id, "level": level}

        taken = s.entity_ids()
        created = []
        for _ in range(spec.count):
            minion = self.enemy_builder.build_one(ref, s.scaling)
            minion.id = self._next_summon_id(s, minion.id, taken)
            taken.add(minion.id)
            minion.summon = True
            minion.summon_owner = source.id
            minion.just_summoned = True
            s.enemies.append(minion)
            created.append(minion)

        names = ", ".join(dict.fromkeys(m.name for m in created))
        s.add_log(f"{source.name} summons {len(created)} × {names}!")
        self._toast(f"{source.name} summoned {len(created)} minion(s).", ToastSeverity.WARNING)

    @staticmethod
    def _next_summon_id(s: BattleState, base_id: str, taken: set[str]) -> str:
        while True:
            s.summon_seq += 1
            candidate = f"{base_id}-s{s.summon_seq}"
            if candidate not in taken:
                return candidate

    # ============================================================
    # HELPERS
    # ============================================================

    def _begin_player_turn(self, s: BattleState, announce: bool) -> None:
        start = start_unit_turn(s, s.player)
        if start.died:
            self._check_end(s)
            return
        if start.skipped:
            decay_statuses(s.player, s.rules)
            s.turn = Turn.ENEMY
            return
        s.turn = Turn.PLAYER
        if announce:
            s.add_log("Your turn.")

    def _finish_player_action(self, s: BattleState) -> None:
        self._prune(s)
        self._check_end(s)
        decay_statuses(s.player, s.rules)
        if not s.over:
            s.turn = Turn.ENEMY

    def _target_position(self, state: BattleState, target_index: int | None) -> int | None:
        position = state.target_position(target_index)
        if position is None:
            log_warning(
                "No valid target for the action.",
                {"target_index": target_index, "enemies": len(state.enemies)},
            )
            return None
        return position

    def _cast_blocker(self, state: BattleState, spell: Spell) -> str | None:
        """Why the player cannot cast a spell now, or None if they can."""
        player = state.player
        if not self.can_player_act(state):
            return "not the player's turn"
        if get_cooldown(player, spell.id) > 0:
            return "on cooldown"
        if player.mp < spell.cost:
            return "not enough MP"
        if spell.kind == AbilityKind.HEAL and player.hp >= player.max_hp:
            return "HP already full"
        return None

    def _item_blocker(self, state: BattleState, item: Item) -> str | None:
        """Why the player cannot use an item now, or None if they can."""
        player = state.player
        if not self.can_player_act(state):
            return "not the player's turn"
        if player.inventory.get(item.id, 0) <= 0:
            return "none left"
        if get_cooldown(player, item.id) > 0:
            return "on cooldown"
        if item.kind == AbilityKind.EQUIPMENT:
            return "equipment cannot be used in battle"
        if item.kind == AbilityKind.HEAL and player.hp >= player.max_hp:
            return "HP already full"
        if item.kind == AbilityKind.MANA and player.mp >= player.max_mp:
            return "MP already full"
        return None

    @staticmethod
    def _allocatable_stat(stat_key: str | BaseAttribute) -> BaseAttribute | None:
        if isinstance(stat_key, BaseAttribute):
            stat = stat_key
        else:
            stat = BaseAttribute.__members__.get(str(stat_key).strip().upper())
        return stat if stat in ALLOCATABLE_STATS else None

    def _spell_hit(self, s: BattleState, spell: Spell, target: Enemy) -> None:
        player = s.player
        if spell.damage_type == DamageType.PHYSICAL:
            base = calc_damage(player.atk, target.defense)
            verb, kind = "uses", "physical"
        else:
            base = calc_damage(player.m_atk, target.m_def)
            verb, kind = "casts", "magic"
        hit = resolve_hit(
            base,
            target,
            element=spell.element or spell.damage_type.value,
            power_mult=spell.power_mult,
            crit_stats=player.effective_stats,
            allow_crit=can_crit(spell),
            rng=self.rng,
        )
        area = " (AOE)" if spell.is_aoe else ""
        self._hit_enemy(
            s,
            target,
            hit,
            f"{player.name} {verb} {spell.name}{area} on {target.name} "
            f"for {hit.damage} {kind} damage",
            spell,
        )

    def _hit_enemy(
        self,
        s: BattleState,
        target: Enemy,
        hit: HitResult,
        message: str,
        ability: AbilitySpec | None = None,
    ) -> None:
        """Applies a hit, logs it, lands the ability's statuses and handles a kill."""
        was_alive = target.is_alive
        target.hp = clamp_hp(target.hp - hit.damage, target.max_hp)
        s.last_hit = hit
        s.add_log(f"{message}{hit.describe()}. ({target.name} HP {target.hp}/{target.max_hp})")
        if ability is not None:
            apply_statuses(target, ability.status_effects, ability.id, s.rules)
        if was_alive and not target.is_alive:
            self._process_death(s, target)

    def _restore_mana(self, s: BattleState, ability: AbilitySpec) -> None:
        player = s.player
        before = player.mp
        player.mp = clamp_mp(before + ability.mp_amount, player.max_mp)
        s.add_log(f"Recovered {player.mp - before} MP. (MP {player.mp}/{player.max_mp})")

    def _toast(self, message: str, severity: ToastSeverity) -> None:
        self.events.emit(ToastEvent(message=message, severity=severity))
