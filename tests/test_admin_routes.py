"""
Tests for the admin JSON API and its session gate.
"""

import os
from datetime import timedelta

import pytest

from bookshelf import db
from bookshelf.models import AdminSession
from conftest import ADMIN_PASSWORD, image_upload


def _book_count(client):
    return len(client.get('/api/books').get_json())


def test_anonymous_mutations_are_rejected_and_store_unchanged(client, auth_headers):
    book = client.post('/api/admin/books', json={'title': 'Dune', 'author': 'Frank Herbert'},
                       headers=auth_headers).get_json()
    review = client.post('/api/admin/reviews', json={'title': 'Spice', 'body': 'Flows'},
                         headers=auth_headers).get_json()

    attempts = [
        client.post('/api/admin/books', json={'title': 'Emma', 'author': 'Jane Austen'}),
        client.put(f"/api/admin/books/{book['id']}", json={'title': 'Changed'}),
        client.delete(f"/api/admin/books/{book['id']}"),
        client.post(f"/api/admin/books/{book['id']}/delete"),
        client.post('/api/admin/reviews', json={'title': 'X', 'body': 'Y'}),
        client.patch(f"/api/admin/reviews/{review['id']}", json={'title': 'Changed'}),
        client.delete(f"/api/admin/reviews/{review['id']}"),
        client.post('/api/admin/books', json={'title': 'Emma', 'author': 'Jane Austen'},
                    headers={'Authorization': 'Bearer forged'}),
    ]
    for response in attempts:
        assert response.status_code == 401
        assert response.get_json()['error'] == 'Authentication required'

    books = client.get('/api/books').get_json()
    assert [(b['id'], b['title']) for b in books] == [(book['id'], 'Dune')]
    assert client.get(f"/api/reviews/{review['id']}").get_json()['title'] == 'Spice'


def test_login_logout_scenario(client):
    wrong = client.post('/api/admin/login', json={'password': 'wrong'})
    assert wrong.status_code == 401

    login = client.post('/api/admin/login', json={'password': ADMIN_PASSWORD})
    assert login.status_code == 200
    headers = {'Authorization': f"Bearer {login.get_json()['token']}"}
    assert client.get('/api/admin/session', headers=headers).get_json()['authenticated'] is True

    created = client.post('/api/admin/reviews', json={'title': 'First', 'body': 'Hello'}, headers=headers)
    assert created.status_code == 201

    assert client.post('/api/admin/logout', headers=headers).status_code == 200

    again = client.post('/api/admin/reviews', json={'title': 'Second', 'body': 'Hello'}, headers=headers)
    assert again.status_code == 401
    assert len(client.get('/api/reviews').get_json()) == 1


def test_cookie_session_from_login(client):
    client.post('/api/admin/login', data={'password': ADMIN_PASSWORD})

    response = client.post('/api/admin/books', json={'title': '1984', 'author': 'George Orwell'})
    assert response.status_code == 201

    client.post('/api/admin/logout')
    assert client.post('/api/admin/books', json={'title': 'Emma', 'author': 'Jane Austen'}).status_code == 401


def test_create_book_end_to_end(client, auth_headers):
    response = client.post('/api/admin/books', json={'title': '1984', 'author': 'George Orwell', 'rating': 5},
                           headers=auth_headers)
    assert response.status_code == 201
    book_id = response.get_json()['id']

    book = client.get(f'/api/books/{book_id}').get_json()
    assert book['title'] == '1984'
    assert book['author'] == 'George Orwell'
    assert book['rating'] == 5
    assert book['tags'] == []
    assert book['isbn'] is None
    assert book['coverUrl'] is None
    assert book['reviews'] == []
    assert book['createdAt'] == book['updatedAt']


def test_create_book_with_review_in_one_call(client, auth_headers):
    response = client.post('/api/admin/books', json={
        'title': 'Dune', 'author': 'Frank Herbert',
        'review': {'title': 'Epic', 'body': 'Sand everywhere', 'rating': 5},
    }, headers=auth_headers)
    assert response.status_code == 201
    assert response.get_json()['reviews'][0]['title'] == 'Epic'


@pytest.mark.parametrize('body, status', [
    ({'author': 'Nobody'}, 400),
    ({'title': 'T', 'author': 'A', 'rating': 9}, 400),
    ({'title': 'T', 'author': 'A', 'tags': 5}, 400),
])
def test_create_book_validation(client, auth_headers, body, status):
    response = client.post('/api/admin/books', json=body, headers=auth_headers)
    assert response.status_code == status
    assert response.get_json()['retryable'] is False
    assert _book_count(client) == 0


def test_duplicate_isbn_is_409(client, auth_headers):
    body = {'title': 'Emma', 'author': 'Jane Austen', 'isbn': '9780141439587'}
    assert client.post('/api/admin/books', json=body, headers=auth_headers).status_code == 201
    response = client.post('/api/admin/books', json=body, headers=auth_headers)
    assert response.status_code == 409
    assert _book_count(client) == 1


def test_update_and_delete_book(client, auth_headers):
    book = client.post('/api/admin/books', json={'title': 'Dune', 'author': 'Frank Herbert'},
                       headers=auth_headers).get_json()
    review = client.post('/api/admin/reviews', json={'bookId': book['id'], 'title': 'Spice', 'body': 'Flows'},
                         headers=auth_headers).get_json()

    updated = client.patch(f"/api/admin/books/{book['id']}", json={'tags': ['scifi'], 'rating': 4},
                           headers=auth_headers).get_json()
    assert updated['tags'] == ['scifi']
    assert updated['title'] == 'Dune'
    assert updated['updatedAt'] > updated['createdAt']

    assert client.delete(f"/api/admin/books/{book['id']}", headers=auth_headers).status_code == 200
    assert client.get(f"/api/books/{book['id']}").status_code == 404
    assert client.get(f"/api/reviews/{review['id']}").get_json()['bookId'] is None
    assert client.delete(f"/api/admin/books/{book['id']}", headers=auth_headers).status_code == 404


def test_update_and_delete_review(client, auth_headers):
    review = client.post('/api/admin/reviews', json={'title': 'Draft', 'body': 'tbd'},
                         headers=auth_headers).get_json()
    assert review['author'] == 'Anonymous'

    updated = client.put(f"/api/admin/reviews/{review['id']}", json={'body': 'Final', 'rating': 3},
                         headers=auth_headers).get_json()
    assert updated['body'] == 'Final'
    assert updated['rating'] == 3

    assert client.post(f"/api/admin/reviews/{review['id']}/delete", headers=auth_headers).status_code == 200
    assert client.get(f"/api/reviews/{review['id']}").status_code == 404


def test_review_for_unknown_book_is_400(client, auth_headers):
    response = client.post('/api/admin/reviews', json={'bookId': 'ghost', 'title': 'T', 'body': 'B'},
                           headers=auth_headers)
    assert response.status_code == 400


def test_malformed_json_is_400(client, auth_headers):
    response = client.post('/api/admin/books', data='{not json', content_type='application/json',
                           headers=auth_headers)
    assert response.status_code == 400


def test_cover_upload_sets_cover_url_and_is_served(app, client, auth_headers):
    response = client.post('/api/admin/books', data={
        'title': 'Dune', 'author': 'Frank Herbert', 'tags': 'scifi, classic',
        'coverImage': image_upload(filename='dune cover.png'),
    }, headers=auth_headers, content_type='multipart/form-data')
    assert response.status_code == 201
    book = response.get_json()
    assert book['tags'] == ['scifi', 'classic']
    assert book['coverUrl'].startswith('/uploads/')
    assert book['coverUrl'].endswith('dune_cover.png')

    served = client.get(book['coverUrl'])
    assert served.status_code == 200
    assert served.data.startswith(b'\x89PNG')
    served.close()


def test_oversized_cover_is_rejected_before_create(app, client, auth_headers):
    response = client.post('/api/admin/books', data={
        'title': 'Dune', 'author': 'Frank Herbert',
        'coverImage': image_upload(size=10 * 1024 * 1024),
    }, headers=auth_headers, content_type='multipart/form-data')
    assert response.status_code == 400
    assert _book_count(client) == 0
    upload_dir = app.config['UPLOAD_FOLDER']
    assert not os.path.isdir(upload_dir) or os.listdir(upload_dir) == []


def test_oversized_cover_leaves_book_unchanged(client, auth_headers):
    book = client.post('/api/admin/books', json={'title': 'Dune', 'author': 'Frank Herbert'},
                       headers=auth_headers).get_json()

    response = client.post(f"/api/admin/books/{book['id']}", data={
        'title': 'Changed', 'coverImage': image_upload(size=10 * 1024 * 1024),
    }, headers=auth_headers, content_type='multipart/form-data')
    assert response.status_code == 400

    after = client.get(f"/api/books/{book['id']}").get_json()
    assert after['title'] == 'Dune'
    assert after['coverUrl'] is None
    assert after['updatedAt'] == book['updatedAt']


@pytest.mark.parametrize('upload', [
    image_upload(filename='notes.txt', content_type='text/plain'),
    image_upload(filename='cover.png', content_type='application/pdf'),
    image_upload(filename='cover', content_type='image/png'),
])
def test_non_image_cover_is_rejected(client, auth_headers, upload):
    response = client.post('/api/admin/books', data={
        'title': 'Dune', 'author': 'Frank Herbert', 'coverImage': upload,
    }, headers=auth_headers, content_type='multipart/form-data')
    assert response.status_code == 400
    assert _book_count(client) == 0


def test_failed_row_write_discards_stored_cover(app, client, auth_headers):
    client.post('/api/admin/books', json={'title': 'Emma', 'author': 'Jane Austen', 'isbn': '123'},
                headers=auth_headers)

    response = client.post('/api/admin/books', data={
        'title': 'Emma again', 'author': 'Jane Austen', 'isbn': '123', 'coverImage': image_upload(),
    }, headers=auth_headers, content_type='multipart/form-data')
    assert response.status_code == 409
    assert os.listdir(app.config['UPLOAD_FOLDER']) == []


def test_replacing_cover_removes_previous_file(app, client, auth_headers):
    book = client.post('/api/admin/books', data={
        'title': 'Dune', 'author': 'Frank Herbert', 'coverImage': image_upload(filename='one.png'),
    }, headers=auth_headers, content_type='multipart/form-data').get_json()

    updated = client.post(f"/api/admin/books/{book['id']}", data={
        'coverImage': image_upload(filename='two.jpg', content_type='image/jpeg'),
    }, headers=auth_headers, content_type='multipart/form-data').get_json()

    files = os.listdir(app.config['UPLOAD_FOLDER'])
    assert len(files) == 1 and files[0].endswith('two.jpg')
    assert updated['coverUrl'].endswith('two.jpg')

    client.delete(f"/api/admin/books/{book['id']}", headers=auth_headers)
    assert os.listdir(app.config['UPLOAD_FOLDER']) == []


def test_expired_session_is_rejected_by_api_and_pages(app, client, auth_headers):
    assert client.get('/api/admin/session', headers=auth_headers).status_code == 200

    with app.app_context():
        for session in AdminSession.query.all():
            session.expires_at = session.created_at - timedelta(seconds=1)
        db.session.commit()

    response = client.post('/api/admin/books', json={'title': 'Emma', 'author': 'Jane Austen'},
                           headers=auth_headers)
    assert response.status_code == 401
    assert response.get_json() == {'error': 'Authentication required', 'retryable': False}

    page = client.get('/admin/', headers=auth_headers)
    assert page.status_code == 302
    assert '/admin/login' in page.headers['Location']
    assert _book_count(client) == 0
