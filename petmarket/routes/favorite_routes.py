from flask_restx import Namespace, Resource, reqparse
from flask_jwt_extended import jwt_required
from petmarket.services import favorite_service
from petmarket.utils.util import current_user_id

favorite_ns = Namespace('favorites', description='Favorite pets', path='/favorites')

page_parser = reqparse.RequestParser()
page_parser.add_argument('page', type=int, location='args', default=1)
page_parser.add_argument('page_size', type=int, location='args', default=10)


@favorite_ns.route('')
class FavoriteList(Resource):
    @jwt_required()
    @favorite_ns.expect(page_parser)
    @favorite_ns.doc('list_favorites', security='BearerAuth')
    def get(self):
        """My favorite pets, newest first"""
        args = page_parser.parse_args()
        return favorite_service.list_favorites(current_user_id(), args['page'], args['page_size']), 200


@favorite_ns.route('/<int:pet_id>')
class FavoriteStatus(Resource):
    @jwt_required()
    @favorite_ns.doc('is_favorite', security='BearerAuth')
    def get(self, pet_id):
        """Whether the pet is in my favorites"""
        return {'pet_id': pet_id, 'is_favorite': favorite_service.is_favorite(current_user_id(), pet_id)}, 200


@favorite_ns.route('/<int:pet_id>/toggle')
class FavoriteToggle(Resource):
    @jwt_required()
    @favorite_ns.doc('toggle_favorite', security='BearerAuth')
    def post(self, pet_id):
        """Add the pet to favorites, or remove it if already there"""
        added = favorite_service.toggle_favorite(current_user_id(), pet_id)
        return {
            'pet_id': pet_id,
            'is_favorite': added,
            'message': 'Added to favorites' if added else 'Removed from favorites'
        }, 200
