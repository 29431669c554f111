"""
JSON API for rollkeep.

- POST /api/normalize: apply the Ten Dice Rule to a pool or pool notation
- POST /api/roll: resolve a roll request (optionally for a character)
- POST /api/characters: create a character record
- GET  /api/characters/<id>: fetch a character record
- GET  /api/characters/<id>/initiative: roll initiative
- GET  /api/events: recent events
"""

import logging
from typing import Optional

from flask import Flask, jsonify, request

from ..core.config import Config, get_config
from ..core.module_loader import create_engine
from ..core.records import RecordEngine
from ..core.result import Result, ErrorCode
from ..modules.dice.parser import DiceNotationError, NotationParser
from ..modules.dice.pool import InvalidPoolError, normalize
from ..modules.dice.requests import request_from_dict

logger = logging.getLogger(__name__)

STATUS_BY_CODE = {
    ErrorCode.CHARACTER_NOT_FOUND.value: 404,
    ErrorCode.OPERATION_NOT_ALLOWED.value: 403,
    ErrorCode.INSUFFICIENT_RESOURCE.value: 409,
    ErrorCode.CONCURRENT_MODIFICATION.value: 409,
    ErrorCode.ROLLER_UNAVAILABLE.value: 503,
    ErrorCode.STORAGE_ERROR.value: 500,
    ErrorCode.UNEXPECTED_ERROR.value: 500,
}


def error_response(result: Result):
    """Translate a failed Result into a JSON error and HTTP status."""
    status = STATUS_BY_CODE.get(result.error_code, 400)
    return jsonify({
        'success': False,
        'error': result.error,
        'error_code': result.error_code
    }), status


def create_app(engine: Optional[RecordEngine] = None,
               config: Optional[Config] = None) -> Flask:
    """
    Create the Flask app.

    Args:
        engine: Record engine to serve (built from config when omitted)
        config: Configuration (defaults to get_config())

    Returns:
        Flask app
    """
    config = config or get_config()
    app = Flask(__name__)
    app.engine = engine or create_engine(config)
    app.rules = config.normalization_rules()

    def get_dice():
        return app.engine.get_module('dice')

    def get_json():
        data = request.get_json(silent=True)
        return data if isinstance(data, dict) else None

    @app.route('/api/normalize', methods=['POST'])
    def api_normalize():
        """
        JSON API: Apply the Ten Dice Rule.

        Request JSON (either form):
            {"roll_dice": 13, "keep_dice": 9, "bonus": 0}
            {"notation": "13k9x10+2"}

        Returns:
            {"success": true, "result": {"roll_dice": 10, "keep_dice": 9, "bonus": 2}}
        """
        data = get_json()
        if data is None:
            return jsonify({'success': False, 'error': 'Request body must be a JSON object'}), 400

        try:
            if 'notation' in data:
                parsed = NotationParser.parse_pool(data['notation'], app.rules)
                result = parsed.normalized.to_dict()
                result.update({'unskilled': parsed.unskilled, 'emphasis': parsed.emphasis})
            else:
                normalized = normalize(int(data['roll_dice']), int(data['keep_dice']),
                                       int(data.get('bonus', 0)), app.rules)
                result = normalized.to_dict()
        except KeyError as e:
            return jsonify({'success': False, 'error': f'Missing required field: {e.args[0]}'}), 400
        except (DiceNotationError, InvalidPoolError, TypeError, ValueError) as e:
            return jsonify({'success': False, 'error': str(e)}), 400

        return jsonify({'success': True, 'result': result})

    @app.route('/api/roll', methods=['POST'])
    def api_roll():
        """
        JSON API: Resolve a roll.

        Request JSON:
            {
                "character_id": "char_123",     # optional for "pool" rolls
                "kind": "skill",
                "skill": "kenjutsu",
                "trait": "agility",
                "tn": 20,
                "raises": 1,
                "spend_void": true
            }

        Returns:
            {"success": true, "result": {"label": ..., "expression": "6d10k4x10",
             "total": 27, "outcome": {"outcome": "success", "raises_achieved": 0}, ...}}
        """
        data = get_json()
        if data is None:
            return jsonify({'success': False, 'error': 'Request body must be a JSON object'}), 400

        try:
            roll_request = request_from_dict(data)
        except ValueError as e:
            return error_response(Result.fail(str(e), ErrorCode.INVALID_INPUT))

        result = get_dice().roll(roll_request,
                                 character_id=data.get('character_id'),
                                 actor_id=data.get('actor_id'))
        if not result.success:
            return error_response(result)
        return jsonify({'success': True, 'result': result.data.to_dict()})

    @app.route('/api/characters')
    def api_list_characters():
        """JSON API: List characters by name."""
        return jsonify([
            {'id': c.id, 'name': c.name, 'version': c.version}
            for c in app.engine.list_characters()
        ])

    @app.route('/api/characters', methods=['POST'])
    def api_create_character():
        """
        JSON API: Create a character.

        Request JSON:
            {"name": "Akodo Toturi", "data": {"traits": {...}, "void_points": {"current": 2}}}
        """
        data = get_json()
        if data is None:
            return jsonify({'success': False, 'error': 'Request body must be a JSON object'}), 400

        result = app.engine.create_character(
            data.get('name'),
            data.get('data') or {},
            character_id=data.get('id')
        )
        if not result.success:
            return error_response(result)
        return jsonify({'success': True, 'character': result.data.to_dict()}), 201

    @app.route('/api/characters/<character_id>')
    def api_character(character_id: str):
        """JSON API: Get a character record."""
        result = app.engine.require_character(character_id)
        if not result.success:
            return error_response(result)
        return jsonify(result.data.to_dict())

    @app.route('/api/characters/<character_id>/initiative')
    def api_initiative(character_id: str):
        """JSON API: Roll initiative for a character."""
        result = get_dice().service.initiative(character_id)
        if not result.success:
            return error_response(result)
        return jsonify({'success': True, 'result': result.data})

    @app.route('/api/events')
    def api_events():
        """JSON API: Get recent events."""
        limit = request.args.get('limit', 50, type=int)
        character_id = request.args.get('character_id', None)
        event_type = request.args.get('type', None)

        events = app.engine.get_events(
            character_id=character_id,
            event_type=event_type,
            limit=limit
        )
        return jsonify([e.to_dict() for e in events])

    return app


def main():
    """Run development server."""
    import argparse
    from ..core.logging_config import setup_logging

    config = get_config()

    parser = argparse.ArgumentParser(description='rollkeep JSON API')
    parser.add_argument('--db', default=config.db_path, help='Record database path')
    parser.add_argument('--host', default=config.host, help='Host to bind to')
    parser.add_argument('--port', type=int, default=config.port, help='Port to bind to')
    parser.add_argument('--debug', action='store_true', default=config.debug,
                        help='Enable debug mode')
    args = parser.parse_args()

    setup_logging(level=config.log_level, log_file=config.log_file)

    app = create_app(create_engine(config, db_path=args.db), config)
    logger.info(f"Serving {args.db} on http://{args.host}:{args.port}")
    app.run(host=args.host, port=args.port, debug=args.debug)


if __name__ == '__main__':
    main()
