# Community feed: "looking for" posts and their comments
import logging
from sqlalchemy import func
from petmarket import db
from petmarket.errors import NotFoundError, ValidationError
from petmarket.models import Comment, PetType, Post
from petmarket.utils.permissions import authorize

logger = logging.getLogger(__name__)


def format_author(user):
    if not user:
        return None
    return {'id': user.id, 'username': user.username, 'role': user.role.value}


def format_comment(comment):
    return {
        'id': comment.id,
        'post_id': comment.post_id,
        'content': comment.content,
        'created_at': comment.created_at.isoformat() if comment.created_at else None,
        'author': format_author(comment.author)
    }


def format_post(post, comment_count=None, with_comments=False):
    result = {
        'id': post.id,
        'title': post.title,
        'content': post.content,
        'looking_for_type': post.looking_for_type.value if post.looking_for_type else None,
        'created_at': post.created_at.isoformat() if post.created_at else None,
        'updated_at': post.updated_at.isoformat() if post.updated_at else None,
        'author': format_author(post.author)
    }
    if comment_count is not None:
        result['comment_count'] = comment_count
    if with_comments:
        result['comments'] = [format_comment(c) for c in post.comments]
        result['comment_count'] = len(result['comments'])
    return result


def list_posts(filter_type=None):
    """Feed of posts, newest first, each with its comment count."""
    conditions = []
    if filter_type:
        try:
            conditions.append(Post.looking_for_type == PetType(filter_type))
        except ValueError:
            logger.warning(f"Ignoring unknown community filter type: {filter_type!r}")

    comment_counts = (db.session.query(Comment.post_id, func.count(Comment.id).label('comment_count'))
                      .group_by(Comment.post_id)
                      .subquery())
    rows = (db.session.query(Post, func.coalesce(comment_counts.c.comment_count, 0))
            .outerjoin(comment_counts, comment_counts.c.post_id == Post.id)
            .filter(*conditions)
            .order_by(Post.created_at.desc(), Post.id.desc())
            .all())
    return [(post, count) for post, count in rows]


def get_post(post_id):
    post = db.session.get(Post, post_id)
    if not post:
        raise NotFoundError('Post not found')
    return post


def create_post(author_id, data):
    title = (data.get('title') or '').strip()
    content = (data.get('content') or '').strip()
    if not title or not content:
        raise ValidationError('Post title and content are required')
    looking_for_type = None
    if data.get('looking_for_type'):
        try:
            looking_for_type = PetType(data['looking_for_type'])
        except ValueError:
            raise ValidationError(f"Invalid pet type: {data['looking_for_type']}")
    try:
        post = Post(author_id=author_id, title=title, content=content, looking_for_type=looking_for_type)
        db.session.add(post)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    logger.info(f"User {author_id} created post {post.id}")
    return post


def add_comment(author_id, post_id, content):
    content = (content or '').strip()
    if not content:
        raise ValidationError('Comment content cannot be blank')
    get_post(post_id)
    try:
        comment = Comment(author_id=author_id, post_id=post_id, content=content)
        db.session.add(comment)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return comment


def delete_post(post_id, caller_id, is_admin=False):
    try:
        post = get_post(post_id)
        authorize(caller_id, post, 'delete', is_admin=is_admin, message='Unauthorized')
        for comment in Comment.query.filter_by(post_id=post.id).all():
            db.session.delete(comment)
        db.session.flush()
        db.session.delete(post)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    logger.info(f"User {caller_id} deleted post {post_id}{' as admin' if is_admin else ''}")
    return {'success': True}
