#!/usr/bin/env python3
"""
Command-line interface for rollkeep.

Provides commands for creating character records, normalizing pools and
resolving rolls from the terminal.
"""

import argparse
import json
import sys

from ..core.config import get_config
from ..core.logging_config import setup_logging
from ..core.module_loader import create_engine
from ..modules.dice.parser import DiceNotationError, NotationParser
from ..modules.dice.requests import PoolRoll, RingRoll, RollOptions, SkillRoll, TraitRoll


def fail(message: str) -> None:
    print(f"✗ Error: {message}", file=sys.stderr)
    sys.exit(1)


def open_engine(args):
    return create_engine(get_config(), db_path=args.db)


def cmd_init(args):
    """Create the record database."""
    engine = open_engine(args)
    types = ', '.join(t['type'] for t in engine.get_event_types())
    engine.close()
    print(f"✓ Record database ready at {args.db}")
    print(f"  Event types: {types}")


def cmd_character_create(args):
    """Create a character record."""
    try:
        data = json.loads(args.data) if args.data else {}
    except json.JSONDecodeError as e:
        fail(f"Invalid JSON data: {e}")

    engine = open_engine(args)
    result = engine.create_character(args.name, data, character_id=args.id)
    engine.close()

    if not result.success:
        fail(result.error)
    character = result.data
    print(f"✓ Character created:")
    print(f"  ID: {character.id}")
    print(f"  Name: {character.name}")


def cmd_character_show(args):
    """Show a character record."""
    engine = open_engine(args)
    result = engine.require_character(args.character_id)
    engine.close()

    if not result.success:
        fail(result.error)
    print(json.dumps(result.data.to_dict(), indent=2))


def cmd_character_list(args):
    """List characters."""
    engine = open_engine(args)
    characters = engine.list_characters()
    engine.close()

    if not characters:
        print("No characters")
        return
    for character in characters:
        print(f"{character.id:20} {character.name} (v{character.version})")


def cmd_normalize(args):
    """Apply the Ten Dice Rule to pool notation."""
    try:
        parsed = NotationParser.parse_pool(args.notation, get_config().normalization_rules())
    except DiceNotationError as e:
        fail(str(e))

    bonus = f"{parsed.bonus:+d}" if parsed.bonus else ""
    print(f"{args.notation} -> {parsed.pool}{bonus}")


def build_request(args):
    """Turn roll arguments into a RollRequest."""
    options = dict(
        roll_mod=args.roll_mod,
        keep_mod=args.keep_mod,
        total_mod=args.total_mod,
        tn=args.tn,
        raises=args.raises,
        apply_wound_penalty=not args.no_wound_penalty,
        spend_void=args.void,
        emphasis=args.emphasis,
        unskilled=args.unskilled,
        roll_type=args.roll_type,
        target_id=args.target
    )

    if args.notation:
        parsed = NotationParser.parse_pool(args.notation)
        options['unskilled'] = options['unskilled'] or parsed.unskilled
        options['emphasis'] = options['emphasis'] or parsed.emphasis
        options['total_mod'] += parsed.written_bonus
        # The service normalizes once, after modifiers and spends are in
        return PoolRoll(roll_dice=parsed.written_roll, keep_dice=parsed.written_keep,
                        name=args.name or '', attack_raises=args.attack_raises,
                        options=RollOptions(**options))
    if args.skill:
        if not args.trait:
            raise ValueError("--skill needs --trait")
        return SkillRoll(skill=args.skill, trait=args.trait, options=RollOptions(**options))
    if args.trait:
        return TraitRoll(trait=args.trait, options=RollOptions(**options))
    if args.ring:
        return RingRoll(ring=args.ring, spell_slot=args.spell_slot, void_slot=args.void_slot,
                        options=RollOptions(**options))
    raise ValueError("Give pool notation, --trait, --skill with --trait, or --ring")


def cmd_roll(args):
    """Resolve a roll."""
    try:
        roll_request = build_request(args)
    except (DiceNotationError, ValueError) as e:
        fail(str(e))

    engine = open_engine(args)
    result = engine.get_module('dice').roll(roll_request, character_id=args.character)
    engine.close()

    if not result.success:
        fail(result.error)

    outcome = result.data
    print(f"{outcome.label}")
    print(f"  {outcome.roll.get_breakdown()}")
    if outcome.outcome_label:
        print(f"  {outcome.outcome_label}", end='')
        raises = outcome.to_dict()['outcome'].get('raises_achieved')
        print(f" (raises: {raises})" if raises else "")


def cmd_initiative(args):
    """Roll initiative for a character."""
    engine = open_engine(args)
    result = engine.get_module('dice').service.initiative(args.character_id)
    engine.close()

    if not result.success:
        fail(result.error)
    print(f"Initiative {result.data['expression']}: {result.data['total']}")
    print(f"  {result.data['breakdown']}")


def cmd_events(args):
    """Show recent events."""
    engine = open_engine(args)
    events = engine.get_events(character_id=args.character, event_type=args.type,
                               limit=args.limit)
    engine.close()

    if not events:
        print("No events found")
        return

    print(f"Recent events ({len(events)}):")
    for event in events:
        print(f"  [{event.timestamp.isoformat()}] {event.event_type}")
        if event.character_id:
            print(f"    Character: {event.character_id}")
        print(f"    Data: {json.dumps(event.data)}")


def build_parser() -> argparse.ArgumentParser:
    config = get_config()

    parser = argparse.ArgumentParser(
        description='rollkeep - roll-and-keep dice engine'
    )
    parser.add_argument('--db', default=config.db_path,
                        help=f'Record database (default: {config.db_path})')
    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    # ========== init command ==========
    parser_init = subparsers.add_parser('init', help='Create the record database')
    parser_init.set_defaults(func=cmd_init)

    # ========== character commands ==========
    parser_character = subparsers.add_parser('character', help='Character operations')
    character_subparsers = parser_character.add_subparsers(dest='character_command')

    parser_character_create = character_subparsers.add_parser('create', help='Create a character')
    parser_character_create.add_argument('name', help='Character name')
    parser_character_create.add_argument('--data', help='Record data as JSON')
    parser_character_create.add_argument('--id', help='Character ID (generated if omitted)')
    parser_character_create.set_defaults(func=cmd_character_create)

    parser_character_show = character_subparsers.add_parser('show', help='Show a character')
    parser_character_show.add_argument('character_id', help='Character ID')
    parser_character_show.set_defaults(func=cmd_character_show)

    parser_character_list = character_subparsers.add_parser('list', help='List characters')
    parser_character_list.set_defaults(func=cmd_character_list)

    # ========== normalize command ==========
    parser_normalize = subparsers.add_parser('normalize', help='Apply the Ten Dice Rule')
    parser_normalize.add_argument('notation', help='Pool notation, e.g. 13k9x10+2')
    parser_normalize.set_defaults(func=cmd_normalize)

    # ========== roll command ==========
    parser_roll = subparsers.add_parser('roll', help='Resolve a roll')
    parser_roll.add_argument('notation', nargs='?', help='Pool notation, e.g. 7k2x10+3')
    parser_roll.add_argument('--character', help='Character ID')
    parser_roll.add_argument('--trait', help='Trait roll (or the trait of a skill roll)')
    parser_roll.add_argument('--skill', help='Skill roll')
    parser_roll.add_argument('--ring', help='Ring roll')
    parser_roll.add_argument('--name', help='Weapon or roll name for pool rolls')
    parser_roll.add_argument('--tn', type=int, default=0, help='Target number')
    parser_roll.add_argument('--raises', type=int, default=0, help='Raises declared')
    parser_roll.add_argument('--roll-mod', type=int, default=0, help='Extra rolled dice')
    parser_roll.add_argument('--keep-mod', type=int, default=0, help='Extra kept dice')
    parser_roll.add_argument('--total-mod', type=int, default=0, help='Flat modifier')
    parser_roll.add_argument('--attack-raises', type=int, default=0,
                             help='Attack raises (+1 rolled die each, pool rolls)')
    parser_roll.add_argument('--void', action='store_true', help='Spend a void point')
    parser_roll.add_argument('--spell-slot', action='store_true', help='Spend a ring spell slot')
    parser_roll.add_argument('--void-slot', action='store_true', help='Spend the void spell slot')
    parser_roll.add_argument('--emphasis', action='store_true', help='Reroll ones')
    parser_roll.add_argument('--unskilled', action='store_true', help='Tens do not explode')
    parser_roll.add_argument('--no-wound-penalty', action='store_true',
                             help='Ignore the wound penalty')
    parser_roll.add_argument('--roll-type', help="Roll type, e.g. 'attack'")
    parser_roll.add_argument('--target', help='Target character ID for attacks')
    parser_roll.set_defaults(func=cmd_roll)

    # ========== initiative command ==========
    parser_initiative = subparsers.add_parser('initiative', help='Roll initiative')
    parser_initiative.add_argument('character_id', help='Character ID')
    parser_initiative.set_defaults(func=cmd_initiative)

    # ========== events command ==========
    parser_events = subparsers.add_parser('events', help='View event log')
    parser_events.add_argument('--character', help='Filter by character ID')
    parser_events.add_argument('--type', help='Filter by event type')
    parser_events.add_argument('--limit', type=int, default=20, help='Number of events to show')
    parser_events.set_defaults(func=cmd_events)

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not getattr(args, 'func', None):
        parser.print_help()
        sys.exit(1)

    config = get_config()
    setup_logging(level=config.log_level, log_file=config.log_file)
    args.func(args)


if __name__ == '__main__':
    main()
