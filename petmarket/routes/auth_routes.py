from flask_restx import Namespace, Resource, fields
from flask import request
from flask_jwt_extended import jwt_required
from petmarket.models import Role
from petmarket.services import user_service
from petmarket.utils.role_utils import get_user_data_with_permissions
from petmarket.utils.util import current_user_id

auth_ns = Namespace('auth', description='Authentication operations', path='/auth')

register_model = auth_ns.model('Register', {
    'username': fields.String(required=True, description='Username'),
    'email': fields.String(required=True, description='Email'),
    'password': fields.String(required=True, description='Password'),
    'role': fields.String(description='CUSTOMER, SELLER or CARETAKER (default CUSTOMER)')
})

login_model = auth_ns.model('Login', {
    'email': fields.String(required=True, description='Email'),
    'password': fields.String(required=True, description='Password')
})


@auth_ns.route('/roles')
class Roles(Resource):
    def get(self):
        """List the available user roles"""
        return {'roles': [role.value for role in Role]}, 200


@auth_ns.route('/register')
class Register(Resource):
    @auth_ns.expect(register_model)
    def post(self):
        """Register a new user (CUSTOMER by default)"""
        data = request.get_json(silent=True) or {}
        user = user_service.register_user(
            data.get('username'), data.get('email'), data.get('password'), role=data.get('role')
        )
        return {
            'message': 'User registered successfully.',
            'access_token': user_service.issue_token(user),
            'user': get_user_data_with_permissions(user)
        }, 201


@auth_ns.route('/login')
class Login(Resource):
    @auth_ns.expect(login_model)
    def post(self):
        """Log in and receive an access token"""
        data = request.get_json(silent=True) or {}
        user = user_service.authenticate(data.get('email'), data.get('password'))
        return {
            'message': 'Logged in successfully.',
            'access_token': user_service.issue_token(user),
            'user': get_user_data_with_permissions(user)
        }, 200


@auth_ns.route('/verify')
class VerifyToken(Resource):
    @jwt_required()
    @auth_ns.doc(security='BearerAuth')
    def get(self):
        """Check that the token is valid"""
        user = user_service.get_user(current_user_id())
        return {
            'message': 'Token is valid.',
            'user': get_user_data_with_permissions(user)
        }, 200
