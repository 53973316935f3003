from flask import Flask, jsonify, request
from flask_cors import CORS
import logging
import os
from datetime import datetime
from rail_structures.passengers import BookingStatus, Passenger
from rail_structures.reservations import ReservationSystem
from rail_structures.storage import JsonSnapshotStore
from rail_structures.trains import Train

DEFAULT_DATA_DIR = os.path.join(os.path.dirname(__file__), 'data')

# ---------------- Logger Setup ----------------
logger = logging.getLogger("railconnect")


def configure_logging(level=None):
    level = level or os.environ.get('RAILCONNECT_LOG_LEVEL', 'INFO')
    logging.basicConfig(level=level.upper(), format="%(asctime)s | %(levelname)s | %(message)s")


# ---------------- Input validation ----------------
def _text(data, field):
    value = data.get(field)
    if value is None:
        return ''
    return str(value).strip()


def _json_body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _error(message, status):
    return jsonify({'success': False, 'error': message}), status


def parse_passenger(data):
    """Build a passenger request from JSON, or return an error message"""
    for field in ('name', 'gender', 'train_id'):
        if not _text(data, field):
            return None, f'Missing required field: {field}'
    try:
        age = int(data.get('age'))
    except (TypeError, ValueError):
        return None, 'Age must be a whole number'
    if age <= 0:
        return None, 'Age must be greater than zero'
    passenger = Passenger(
        name=_text(data, 'name'),
        age=age,
        gender=_text(data, 'gender'),
        train_id=_text(data, 'train_id'),
    )
    return passenger, None


def parse_train(data):
    """Build a train from JSON, or return an error message"""
    for field in ('train_id', 'name', 'source', 'destination'):
        if not _text(data, field):
            return None, f'Missing required field: {field}'
    try:
        total_seats = int(data.get('total_seats'))
    except (TypeError, ValueError):
        return None, 'total_seats must be a whole number'
    try:
        base_fare = float(data.get('base_fare'))
    except (TypeError, ValueError):
        return None, 'base_fare must be a number'
    if total_seats < 0:
        return None, 'total_seats cannot be negative'
    if base_fare < 0:
        return None, 'base_fare cannot be negative'
    train = Train(
        train_id=_text(data, 'train_id'),
        name=_text(data, 'name'),
        source=_text(data, 'source'),
        destination=_text(data, 'destination'),
        total_seats=total_seats,
        base_fare=base_fare,
    )
    return train, None


def train_view(train):
    return {
        'train_id': train.train_id,
        'name': train.name,
        'source': train.source,
        'destination': train.destination,
        'total_seats': train.total_seats,
        'booked_seats': train.booked_seats,
        'available_seats': train.available_seats,
        'base_fare': train.base_fare,
    }


def passenger_view(passenger):
    return {
        'pnr': passenger.pnr,
        'name': passenger.name,
        'age': passenger.age,
        'gender': passenger.gender,
        'train_id': passenger.train_id,
        'seat_no': passenger.seat_no,
        'fare': passenger.fare,
    }


def create_app(data_dir=None, store=None):
    """Create the Flask app around a single reservation engine"""
    configure_logging()
    app = Flask(__name__)
    CORS(app)

    if store is None:
        data_dir = data_dir or os.environ.get('RAILCONNECT_DATA_DIR', DEFAULT_DATA_DIR)
        store = JsonSnapshotStore(data_dir)
    reservations = ReservationSystem(store)
    app.extensions['reservations'] = reservations

    @app.route('/health')
    def health_check():
        return jsonify({'status': 'healthy', 'timestamp': datetime.now().isoformat()})

    # ------------------- Trains -------------------
    @app.route('/api/trains', methods=['GET'])
    def list_all_trains():
        """API: Get all trains"""
        trains = reservations.list_trains()
        return jsonify({'success': True, 'trains': [train_view(t) for t in trains]})

    @app.route('/api/trains/search', methods=['GET'])
    def search_trains():
        """API: Search trains by source and destination"""
        source = (request.args.get('source') or '').strip()
        destination = (request.args.get('destination') or '').strip()
        if not source or not destination:
            return _error('Please enter both source and destination', 400)

        trains = reservations.search_trains(source, destination)
        logger.info("Searched trains: %s -> %s (found %d)", source, destination, len(trains))
        return jsonify({
            'success': True,
            'source': source,
            'destination': destination,
            'trains': [train_view(t) for t in trains],
        })

    @app.route('/api/trains/<train_id>', methods=['GET'])
    def get_train(train_id):
        """API: Get specific train"""
        train = reservations.find_train(train_id)
        if train is None:
            return _error('Train not found', 404)
        return jsonify({'success': True, 'train': train_view(train)})

    @app.route('/api/trains', methods=['POST'])
    def add_train():
        """API: Add new train"""
        try:
            data = _json_body()
            train, message = parse_train(data)
            if message:
                return _error(message, 400)

            if not reservations.add_train(train):
                return _error(f'Train {train.train_id} already exists', 409)

            return jsonify({
                'success': True,
                'message': 'Train added successfully',
                'train': train_view(reservations.find_train(train.train_id)),
            }), 201

        except Exception as e:
            logger.exception("Adding train failed")
            return _error(str(e), 500)

    # ------------------- Bookings -------------------
    @app.route('/api/bookings', methods=['POST'])
    def book_ticket():
        """API: Book a ticket, or join the waiting list when the train is full"""
        try:
            data = _json_body()
            passenger, message = parse_passenger(data)
            if message:
                return _error(message, 400)

            outcome = reservations.book_ticket(passenger.train_id, passenger)
            if outcome.status is BookingStatus.TRAIN_NOT_FOUND:
                return _error('Booking failed (train not found)', 404)

            if outcome.confirmed:
                message = f'Ticket booked. PNR: {outcome.pnr}'
            else:
                message = 'Train full: passenger added to waiting list'
            return jsonify({
                'success': True,
                'message': message,
                'booking': outcome.to_dict(),
                'saved': outcome.saved,
            })

        except Exception as e:
            logger.exception("Booking failed")
            return _error(str(e), 500)

    @app.route('/api/bookings', methods=['GET'])
    def list_bookings():
        """API: Get confirmed bookings"""
        passengers = reservations.list_passengers()
        return jsonify({'success': True, 'bookings': [passenger_view(p) for p in passengers]})

    @app.route('/api/bookings/<pnr>', methods=['GET'])
    def get_booking(pnr):
        passenger = reservations.find_passenger(pnr.strip())
        if passenger is None:
            return _error('PNR not found', 404)
        return jsonify({'success': True, 'booking': passenger_view(passenger)})

    @app.route('/api/bookings/<pnr>', methods=['DELETE'])
    def cancel_ticket(pnr):
        """API: Cancel a ticket by PNR"""
        try:
            pnr = pnr.strip()
            cancellation = reservations.cancel_with_promotion(pnr)
            if not cancellation.cancelled:
                return _error('PNR not found', 404)

            return jsonify({
                'success': True,
                'message': 'Ticket cancelled successfully',
                'promotion': cancellation.promotion.to_dict() if cancellation.promotion else None,
                'saved': cancellation.saved,
            })

        except Exception as e:
            logger.exception("Cancellation failed")
            return _error(str(e), 500)

    @app.route('/api/waiting', methods=['GET'])
    def waiting_list():
        """API: Waiting list, front first"""
        waiting = reservations.waiting_passengers()
        return jsonify({
            'success': True,
            'waiting': [
                {'position': i, **passenger_view(p)}
                for i, p in enumerate(waiting, start=1)
            ],
        })

    @app.route('/api/stats', methods=['GET'])
    def statistics():
        return jsonify({'success': True, 'stats': reservations.statistics()})

    @app.errorhandler(404)
    def page_not_found(e):
        return _error('Not found', 404)

    @app.errorhandler(405)
    def method_not_allowed(e):
        return _error('Method not allowed', 405)

    return app


if __name__ == '__main__':
    app = create_app()
    app.run(host='0.0.0.0', port=int(os.environ.get('PORT', 5000)),
            debug=os.environ.get('FLASK_DEBUG') == '1')
