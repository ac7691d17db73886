from flask import Blueprint, jsonify

from banqi import get_rooms

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Banqi game server!'})

@main.route('/health')
def health():
    return jsonify({'ok': True, 'rooms': len(get_rooms())})
