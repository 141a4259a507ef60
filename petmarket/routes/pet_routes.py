from flask_restx import Namespace, Resource, fields, reqparse, inputs
from flask import request
from flask_jwt_extended import jwt_required
from petmarket.models import PetStatus, PetType, Role
from petmarket.services import pet_service
from petmarket.utils.util import current_user_id, role_required


pet_ns = Namespace('pets', description='Pet catalog operations', path='/pets')

pet_model = pet_ns.model('PetInput', {
    'name': fields.String(required=True, min_length=2, max_length=100, example='Max'),
    'type': fields.String(required=True, enum=[t.value for t in PetType], example='dog'),
    'description': fields.String(example='A very friendly Golden Retriever'),
    'price_cents': fields.Integer(required=True, min=0, example=15000),
    'status': fields.String(enum=[s.value for s in PetStatus]),
    'images': fields.List(fields.String, description='Image URLs, the first one is primary'),
    'attributes': fields.Raw(description='Open attributes map (breed, age_months, color, sex, ...)',
                             example={'breed': 'Golden Retriever', 'age_months': 24})
})

pet_patch_model = pet_ns.model('PetPatch', {
    'name': fields.String(min_length=2, max_length=100),
    'type': fields.String(enum=[t.value for t in PetType]),
    'description': fields.String(),
    'price_cents': fields.Integer(min=0),
    'status': fields.String(enum=[s.value for s in PetStatus]),
    'images': fields.List(fields.String, description='Replaces every image of the pet'),
    'attributes': fields.Raw()
})

search_parser = reqparse.RequestParser()
search_parser.add_argument('type', type=str, location='args', help='Exact pet type')
search_parser.add_argument('min_price', type=int, location='args', help='Minimum price in cents')
search_parser.add_argument('max_price', type=int, location='args', help='Maximum price in cents')
search_parser.add_argument('keyword', type=str, location='args', help='Name contains (case-insensitive)')
search_parser.add_argument('breed', type=str, location='args', help='Breed contains (case-insensitive)')
search_parser.add_argument('city', type=str, location='args', help="Owner's city")
search_parser.add_argument('owner_id', type=int, location='args', help='Listings of one owner')
search_parser.add_argument('status', type=str, location='args',
                           help='Only honoured for the owner dashboard view (as_owner=true)')
search_parser.add_argument('as_owner', type=inputs.boolean, location='args', default=False,
                           help='View your own listings in every status; owner_id must be your id')
search_parser.add_argument('page', type=int, location='args', default=1)
search_parser.add_argument('page_size', type=int, location='args', default=10)


@pet_ns.route('')
class PetList(Resource):
    @jwt_required(optional=True)
    @pet_ns.expect(search_parser)
    @pet_ns.doc('search_pets')
    def get(self):
        """Search pets with filters and pagination"""
        args = search_parser.parse_args()
        result = pet_service.search_pets(args, viewer_id=current_user_id())
        result['data'] = [pet_service.format_pet(p) for p in result['data']]
        return result, 200

    @role_required(Role.SELLER, Role.ADMIN)
    @pet_ns.expect(pet_model, validate=True)
    @pet_ns.doc('create_pet', security='BearerAuth')
    def post(self):
        """List a new pet for sale"""
        data = request.get_json(silent=True) or {}
        new_pet = pet_service.create_pet(current_user_id(), data)
        return pet_service.format_pet(new_pet), 201


@pet_ns.route('/<int:pet_id>')
class PetResource(Resource):
    @pet_ns.doc('get_pet')
    def get(self, pet_id):
        """Get pet details"""
        return pet_service.format_pet(pet_service.get_pet(pet_id)), 200

    @role_required(Role.SELLER, Role.ADMIN)
    @pet_ns.expect(pet_patch_model, validate=True)
    @pet_ns.doc('update_pet', security='BearerAuth')
    def patch(self, pet_id):
        """Update a listing; passing images replaces the whole image set"""
        data = request.get_json(silent=True) or {}
        pet = pet_service.update_pet(pet_id, current_user_id(), data)
        return pet_service.format_pet(pet), 200

    @role_required(Role.SELLER, Role.ADMIN)
    @pet_ns.doc('delete_pet', security='BearerAuth')
    def delete(self, pet_id):
        """Delete a listing"""
        pet_service.delete_pet(pet_id, current_user_id())
        return {'message': 'Pet deleted'}, 200
