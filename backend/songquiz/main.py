from flask import Blueprint, current_app, jsonify

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the SongQuiz game server!'})


@main.route('/api/rooms/<string:room_id>', methods=['GET'])
def get_room_state(room_id):
    """
    Returns the public state of a room. The current song is only included
    once its round has been resolved.
    """
    room = current_app.extensions['songquiz'].get(room_id)
    if not room:
        return jsonify({'error': 'Room not found'}), 404
    return jsonify(room.snapshot())
