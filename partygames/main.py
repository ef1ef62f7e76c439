from flask import Blueprint, request, jsonify
from .models import db, Organizer
from flask_login import login_user, logout_user, login_required, current_user

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Party games API'})


@main.route('/register', methods=['POST', 'OPTIONS'])
def register():
    if request.method == 'OPTIONS':
        return jsonify({'status': 'ok'}), 200
    data = request.get_json(silent=True) or {}
    email = (data.get('email') or '').strip().lower()
    password = data.get('password')
    if not email or not password:
        return jsonify({"success": False, "message": "Email and password are required"}), 400
    if Organizer.query.filter_by(email=email).first():
        return jsonify({"success": False, "message": "Email already registered"}), 400

    organizer = Organizer(email=email, name=data.get('name'))
    organizer.set_password(password)
    db.session.add(organizer)
    db.session.commit()
    login_user(organizer)
    return jsonify({"success": True, "user": organizer.to_dict()}), 201


@main.route('/login', methods=['POST', 'OPTIONS'])
def login():
    if request.method == 'OPTIONS':
        return jsonify({'status': 'ok'}), 200
    data = request.get_json(silent=True) or {}
    email = (data.get('email') or '').strip().lower()
    organizer = Organizer.query.filter_by(email=email).first()
    if organizer and organizer.check_password(data.get('password') or ''):
        login_user(organizer)
        return jsonify({"success": True, "user": organizer.to_dict()})
    return jsonify({"success": False, "message": "Invalid credentials"}), 401


@main.route('/check_login', methods=['GET'])
@login_required
def check_login():
    return jsonify({"success": True, "user": current_user.to_dict()})


@main.route('/logout', methods=['POST', 'OPTIONS'])
@login_required
def logout():
    logout_user()
    return jsonify({"success": True})
