from flask_restx import Namespace, Resource, fields
from flask import request
from flask_jwt_extended import jwt_required
from petmarket.models import OrderStatus, Role
from petmarket.services import order_service
from petmarket.utils.util import current_user_id, role_required

order_ns = Namespace('orders', description='Marketplace orders', path='/orders')

create_order_model = order_ns.model('CreateOrder', {
    'pet_ids': fields.List(fields.Integer, required=True, min_items=1, example=[101, 102],
                           description='IDs of the pets to purchase')
})

order_status_model = order_ns.model('OrderStatusUpdate', {
    'status': fields.String(required=True, enum=[s.value for s in OrderStatus]),
    'payment_ref': fields.String(description='External payment id')
})


@order_ns.route('')
class OrderList(Resource):
    @jwt_required()
    @order_ns.doc('list_my_orders', security='BearerAuth')
    def get(self):
        """List the current user's orders"""
        orders = order_service.list_orders(current_user_id())
        return [order_service.format_order(o) for o in orders], 200

    @jwt_required()
    @order_ns.expect(create_order_model, validate=True)
    @order_ns.doc('create_order', security='BearerAuth')
    def post(self):
        """Start a checkout: reserve the pets and create the order"""
        data = request.get_json(silent=True) or {}
        order = order_service.create_order(current_user_id(), data.get('pet_ids'))
        return order_service.format_order(order), 201


@order_ns.route('/<int:order_id>')
class OrderResource(Resource):
    @jwt_required()
    @order_ns.doc('get_order', security='BearerAuth')
    def get(self, order_id):
        """Get an order with its items"""
        order = order_service.get_order(order_id, current_user_id())
        return order_service.format_order(order), 200


@order_ns.route('/<int:order_id>/status')
class OrderStatusResource(Resource):
    @role_required(Role.ADMIN)
    @order_ns.expect(order_status_model)
    @order_ns.doc('update_order_status', security='BearerAuth')
    def patch(self, order_id):
        """Set the order status (payment confirmations, shipping, refunds)"""
        data = request.get_json(silent=True) or {}
        order = order_service.update_order_status(order_id, data.get('status'), data.get('payment_ref'))
        return order_service.format_order(order), 200


@order_ns.route('/<int:order_id>/cancel')
class OrderCancelResource(Resource):
    @jwt_required()
    @order_ns.doc('cancel_order', security='BearerAuth')
    def post(self, order_id):
        """Cancel an unpaid order and release its pets"""
        order = order_service.cancel_order(order_id, current_user_id())
        return order_service.format_order(order), 200
