from flask_restx import Namespace, Resource, fields, reqparse
from flask import request
from flask_jwt_extended import jwt_required
from petmarket.errors import ValidationError
from petmarket.models import BookingStatus, Role, ServiceType
from petmarket.services import booking_service
from petmarket.utils.dates import parse_datetime
from petmarket.utils.util import current_user_id, role_required

caretaking_ns = Namespace('caretaking', description='Caretaking services and bookings', path='/caretaking')

service_model = caretaking_ns.model('ServiceInput', {
    'title': fields.String(required=True, max_length=100, example='Weekend boarding'),
    'description': fields.String(),
    'type': fields.String(required=True, enum=[t.value for t in ServiceType], example='boarding'),
    'base_price_cents': fields.Integer(required=True, min=0, example=2500),
    'price_unit': fields.String(default='per_day')
})

booking_model = caretaking_ns.model('BookingInput', {
    'service_id': fields.Integer(required=True),
    'pet_id': fields.Integer(required=True),
    'start_date': fields.String(required=True, description='ISO 8601 datetime', example='2024-01-01T00:00:00Z'),
    'end_date': fields.String(required=True, description='ISO 8601 datetime', example='2024-01-03T00:00:00Z')
})

booking_status_model = caretaking_ns.model('BookingStatusUpdate', {
    'status': fields.String(required=True, enum=[s.value for s in BookingStatus])
})

log_model = caretaking_ns.model('CareLogInput', {
    'title': fields.String(required=True, example='Morning walk'),
    'description': fields.String(),
    'image_url': fields.String(),
    'meta': fields.Raw()
})

service_filter_parser = reqparse.RequestParser()
service_filter_parser.add_argument('type', type=str, location='args', help='Service type')

bookings_parser = reqparse.RequestParser()
bookings_parser.add_argument('role', type=str, location='args', default='customer',
                             choices=('customer', 'provider'), help='customer or provider')


@caretaking_ns.route('/services')
class ServiceList(Resource):
    @caretaking_ns.expect(service_filter_parser)
    @caretaking_ns.doc('list_services')
    def get(self):
        """List active caretaking services"""
        args = service_filter_parser.parse_args()
        services = booking_service.list_services(args.get('type'))
        return [booking_service.format_service(s) for s in services], 200

    @role_required(Role.CARETAKER, Role.ADMIN)
    @caretaking_ns.expect(service_model, validate=True)
    @caretaking_ns.doc('create_service', security='BearerAuth')
    def post(self):
        """Offer a new caretaking service"""
        data = request.get_json(silent=True) or {}
        service = booking_service.create_service(current_user_id(), data)
        return booking_service.format_service(service), 201


@caretaking_ns.route('/bookings')
class BookingList(Resource):
    @jwt_required()
    @caretaking_ns.expect(bookings_parser)
    @caretaking_ns.doc('list_my_bookings', security='BearerAuth')
    def get(self):
        """List my bookings as a customer or as a provider"""
        args = bookings_parser.parse_args()
        bookings = booking_service.get_my_bookings(current_user_id(), args['role'])
        return [booking_service.format_booking(b) for b in bookings], 200

    @jwt_required()
    @caretaking_ns.expect(booking_model, validate=True)
    @caretaking_ns.doc('create_booking', security='BearerAuth')
    def post(self):
        """Book a service for one of your pets"""
        data = request.get_json(silent=True) or {}
        if not all(k in data for k in ('service_id', 'pet_id', 'start_date', 'end_date')):
            raise ValidationError('Missing required fields: service_id, pet_id, start_date, end_date')
        try:
            start_date = parse_datetime(data['start_date'])
            end_date = parse_datetime(data['end_date'])
        except ValueError as ve:
            raise ValidationError(str(ve))
        booking = booking_service.create_booking(
            current_user_id(), data['service_id'], data['pet_id'], start_date, end_date
        )
        return booking_service.format_booking(booking), 201


@caretaking_ns.route('/bookings/<int:booking_id>/status')
class BookingStatusResource(Resource):
    @jwt_required()
    @caretaking_ns.expect(booking_status_model)
    @caretaking_ns.doc('update_booking_status', security='BearerAuth')
    def patch(self, booking_id):
        """Accept, reject, start or complete a booking (provider only)"""
        data = request.get_json(silent=True) or {}
        booking = booking_service.update_booking_status(booking_id, current_user_id(), data.get('status'))
        return booking_service.format_booking(booking), 200


@caretaking_ns.route('/bookings/<int:booking_id>/logs')
class BookingLogList(Resource):
    @jwt_required()
    @caretaking_ns.doc('list_booking_logs', security='BearerAuth')
    def get(self, booking_id):
        """Care logs of a booking, newest first"""
        logs = booking_service.get_booking_logs(booking_id, current_user_id())
        return [booking_service.format_log(log) for log in logs], 200

    @jwt_required()
    @caretaking_ns.expect(log_model, validate=True)
    @caretaking_ns.doc('add_booking_log', security='BearerAuth')
    def post(self, booking_id):
        """Append a care log entry (provider only)"""
        data = request.get_json(silent=True) or {}
        log = booking_service.add_log(booking_id, current_user_id(), data)
        return booking_service.format_log(log), 201
