import logging

import pytest

from petmarket.errors import AuthorizationError, NotFoundError, ValidationError
from petmarket.models import Comment, Post, PetType
from petmarket.services import community_service


@pytest.fixture
def author(make_user):
    return make_user()


@pytest.fixture
def post(author):
    return community_service.create_post(author.id, {
        'title': 'Looking for a kitten', 'content': 'Calm, indoor', 'looking_for_type': 'cat',
    })


class TestPosts:
    def test_create_post(self, post, author):
        assert post.author_id == author.id
        assert post.looking_for_type == PetType.CAT

    def test_title_and_content_required(self, author):
        with pytest.raises(ValidationError):
            community_service.create_post(author.id, {'title': '', 'content': 'x'})

    def test_invalid_looking_for_type(self, author):
        with pytest.raises(ValidationError):
            community_service.create_post(author.id, {'title': 't', 'content': 'c', 'looking_for_type': 'unicorn'})

    def test_get_post_includes_comments(self, post, make_user):
        community_service.add_comment(make_user().id, post.id, 'I have one!')

        data = community_service.format_post(community_service.get_post(post.id), with_comments=True)

        assert data['comment_count'] == 1
        assert data['comments'][0]['content'] == 'I have one!'


class TestComments:
    def test_comment_on_missing_post(self, author):
        with pytest.raises(NotFoundError):
            community_service.add_comment(author.id, 999, 'Hello?')
        assert Comment.query.count() == 0

    def test_blank_comment(self, post, author):
        with pytest.raises(ValidationError):
            community_service.add_comment(author.id, post.id, '   ')


class TestFeed:
    def test_feed_reports_comment_counts(self, post, author, make_user):
        quiet = community_service.create_post(author.id, {'title': 'Any dog', 'content': 'Big yard'})
        commenter = make_user()
        community_service.add_comment(commenter.id, post.id, 'one')
        community_service.add_comment(commenter.id, post.id, 'two')

        counts = {p.id: count for p, count in community_service.list_posts()}

        assert counts == {post.id: 2, quiet.id: 0}

    def test_feed_filters_by_type(self, post, author):
        community_service.create_post(author.id, {'title': 'Any dog', 'content': 'Big yard', 'looking_for_type': 'dog'})

        rows = community_service.list_posts('cat')

        assert [p.id for p, _ in rows] == [post.id]

    def test_unknown_filter_is_ignored_with_warning(self, post, author, caplog):
        community_service.create_post(author.id, {'title': 'Any dog', 'content': 'Big yard'})

        with caplog.at_level(logging.WARNING, logger='petmarket.services.community_service'):
            rows = community_service.list_posts('dragon')

        assert len(rows) == 2
        assert 'dragon' in caplog.text


class TestDeletePost:
    def test_stranger_cannot_delete(self, post, make_user):
        community_service.add_comment(make_user().id, post.id, 'nice')

        with pytest.raises(AuthorizationError):
            community_service.delete_post(post.id, make_user().id)

        assert Post.query.count() == 1
        assert Comment.query.count() == 1

    def test_author_deletes_post_and_comments(self, post, author, make_user):
        community_service.add_comment(make_user().id, post.id, 'nice')

        assert community_service.delete_post(post.id, author.id) == {'success': True}

        assert Post.query.count() == 0
        assert Comment.query.count() == 0

    def test_admin_may_delete_any_post(self, post, make_user):
        assert community_service.delete_post(post.id, make_user().id, is_admin=True) == {'success': True}
        assert Post.query.count() == 0

    def test_missing_post(self, author):
        with pytest.raises(NotFoundError):
            community_service.delete_post(999, author.id)
