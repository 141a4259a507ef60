from flask_restx import Namespace, Resource, fields, reqparse
from flask import request
from flask_jwt_extended import jwt_required
from petmarket.models import PetType
from petmarket.services import community_service
from petmarket.utils.util import current_user_id, is_admin

community_ns = Namespace('community', description='Community "looking for" posts', path='/community')

post_model = community_ns.model('PostInput', {
    'title': fields.String(required=True, max_length=255, example='Looking for a calm senior cat'),
    'content': fields.String(required=True),
    'looking_for_type': fields.String(enum=[t.value for t in PetType])
})

comment_model = community_ns.model('CommentInput', {
    'content': fields.String(required=True)
})

feed_parser = reqparse.RequestParser()
feed_parser.add_argument('type', type=str, location='args', help='Pet type; unknown values are ignored')


@community_ns.route('/posts')
class PostList(Resource):
    @community_ns.expect(feed_parser)
    @community_ns.doc('list_posts')
    def get(self):
        """Community feed with comment counts"""
        args = feed_parser.parse_args()
        rows = community_service.list_posts(args.get('type'))
        return [community_service.format_post(post, comment_count=count) for post, count in rows], 200

    @jwt_required()
    @community_ns.expect(post_model, validate=True)
    @community_ns.doc('create_post', security='BearerAuth')
    def post(self):
        """Create a post"""
        data = request.get_json(silent=True) or {}
        post = community_service.create_post(current_user_id(), data)
        return community_service.format_post(post, comment_count=0), 201


@community_ns.route('/posts/<int:post_id>')
class PostResource(Resource):
    @community_ns.doc('get_post')
    def get(self, post_id):
        """A post with all its comments"""
        return community_service.format_post(community_service.get_post(post_id), with_comments=True), 200

    @jwt_required()
    @community_ns.doc('delete_post', security='BearerAuth')
    def delete(self, post_id):
        """Delete a post (author or admin)"""
        community_service.delete_post(post_id, current_user_id(), is_admin=is_admin())
        return {'message': 'Post deleted'}, 200


@community_ns.route('/posts/<int:post_id>/comments')
class CommentList(Resource):
    @jwt_required()
    @community_ns.expect(comment_model, validate=True)
    @community_ns.doc('add_comment', security='BearerAuth')
    def post(self, post_id):
        """Comment on a post"""
        data = request.get_json(silent=True) or {}
        comment = community_service.add_comment(current_user_id(), post_id, data.get('content'))
        return community_service.format_comment(comment), 201
