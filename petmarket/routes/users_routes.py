from flask_restx import Namespace, Resource, fields
from flask import request
from flask_jwt_extended import jwt_required
from petmarket.services import user_service
from petmarket.utils.util import current_user_id

users_ns = Namespace('users', description='User profiles', path='/users')

profile_model = users_ns.model('ProfileUpdate', {
    'bio': fields.String(description='Short bio'),
    'phone_number': fields.String(description='Phone number'),
    'address_city': fields.String(description='City, used by the catalog city filter')
})


@users_ns.route('/me')
class CurrentUser(Resource):
    @jwt_required()
    @users_ns.doc('get_my_profile', security='BearerAuth')
    def get(self):
        """Get the logged-in user and their profile"""
        user = user_service.get_user(current_user_id())
        return user_service.format_current_user(user), 200

    @jwt_required()
    @users_ns.expect(profile_model)
    @users_ns.doc('update_my_profile', security='BearerAuth')
    def patch(self):
        """Create or update the logged-in user's profile"""
        data = request.get_json(silent=True) or {}
        profile = user_service.update_profile(current_user_id(), data)
        return user_service.format_profile(profile), 200


@users_ns.route('/<int:user_id>')
class PublicUser(Resource):
    @users_ns.doc('get_public_profile')
    def get(self, user_id):
        """Get the public profile of a user"""
        return user_service.format_public_user(user_service.get_user(user_id)), 200
