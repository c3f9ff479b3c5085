"""
Browser admin dashboard: login, book and review forms.

A rejected submission re-renders its form with the error message and the
values the admin typed, so nothing is lost on a failed save.
"""

import logging

from flask import Blueprint, flash, g, make_response, redirect, render_template, request, url_for

from bookshelf.api.auth import (
    clear_session_cookie,
    get_session_gate,
    page_login_required,
    request_token,
    set_session_cookie,
)
from bookshelf.core.errors import LibraryError, UnauthorizedError
from bookshelf.services import catalog, library_store

logger = logging.getLogger(__name__)

admin_pages_bp = Blueprint('admin_pages', __name__, url_prefix='/admin')


def _safe_next(target):
    if target and target.startswith('/') and not target.startswith('//'):
        return target
    return url_for('admin_pages.dashboard')


def _form_time(value):
    # datetime-local inputs take "YYYY-MM-DDTHH:MM"
    return value[:16] if value else ''


def _book_form(book):
    data = book.to_dict()
    return {
        'title': data['title'],
        'author': data['author'],
        'isbn': data['isbn'] or '',
        'coverUrl': data['coverUrl'] or '',
        'tags': ', '.join(data['tags']),
        'notes': data['notes'] or '',
        'rating': data['rating'] or '',
        'startedReadingAt': _form_time(data['startedReadingAt']),
        'finishedReadingAt': _form_time(data['finishedReadingAt']),
    }


def _review_form(review):
    return {
        'bookId': review.book_id or '',
        'title': review.title,
        'body': review.body,
        'author': review.author,
        'rating': review.rating or '',
    }


@admin_pages_bp.route('/login', methods=['GET', 'POST'])
def login():
    next_url = request.values.get('next', '')
    if request.method == 'GET':
        if get_session_gate().authenticate(request_token()) is not None:
            return redirect(_safe_next(next_url))
        return render_template('admin/login.html', next_url=next_url)

    try:
        session = get_session_gate().login(request.form.get('password'))
    except UnauthorizedError as e:
        return render_template('admin/login.html', next_url=next_url, error=e.message), 401
    response = make_response(redirect(_safe_next(next_url)))
    return set_session_cookie(response, session)


@admin_pages_bp.route('/logout', methods=['POST'])
@page_login_required
def logout():
    get_session_gate().logout(g.admin_session.token)
    response = make_response(redirect(url_for('admin_pages.login')))
    return clear_session_cookie(response)


@admin_pages_bp.route('/', methods=['GET'])
@page_login_required
def dashboard():
    return render_template(
        'admin/dashboard.html',
        books=library_store.list_books(),
        reviews=library_store.list_reviews(),
    )


@admin_pages_bp.route('/books/new', methods=['GET', 'POST'])
@page_login_required
def new_book():
    if request.method == 'GET':
        return render_template('admin/book_form.html', form={}, book_id=None)
    try:
        book = catalog.create_book(request.form.to_dict(), cover=request.files.get('coverImage'))
    except LibraryError as e:
        logger.warning(f"Book form rejected: {e.message}")
        return render_template('admin/book_form.html', form=request.form, book_id=None,
                               error=e.message), e.status_code
    flash(f"Added '{book.title}'")
    return redirect(url_for('admin_pages.dashboard'))


@admin_pages_bp.route('/books/<book_id>/edit', methods=['GET', 'POST'])
@page_login_required
def edit_book(book_id):
    if request.method == 'GET':
        book = library_store.get_book(book_id)
        return render_template('admin/book_form.html', form=_book_form(book), book_id=book_id)
    try:
        book = catalog.update_book(book_id, request.form.to_dict(), cover=request.files.get('coverImage'))
    except LibraryError as e:
        logger.warning(f"Book form rejected: {e.message}")
        return render_template('admin/book_form.html', form=request.form, book_id=book_id,
                               error=e.message), e.status_code
    flash(f"Saved '{book.title}'")
    return redirect(url_for('admin_pages.dashboard'))


@admin_pages_bp.route('/books/<book_id>/delete', methods=['POST'])
@page_login_required
def delete_book(book_id):
    snapshot = catalog.delete_book(book_id)
    flash(f"Deleted '{snapshot['title']}'")
    return redirect(url_for('admin_pages.dashboard'))


@admin_pages_bp.route('/reviews/new', methods=['GET', 'POST'])
@page_login_required
def new_review():
    books = library_store.list_books()
    if request.method == 'GET':
        form = {'bookId': request.args.get('bookId', '')}
        return render_template('admin/review_form.html', form=form, books=books, review_id=None)
    try:
        library_store.create_review(request.form.to_dict())
    except LibraryError as e:
        logger.warning(f"Review form rejected: {e.message}")
        return render_template('admin/review_form.html', form=request.form, books=books,
                               review_id=None, error=e.message), e.status_code
    flash("Review published")
    return redirect(url_for('admin_pages.dashboard'))


@admin_pages_bp.route('/reviews/<review_id>/edit', methods=['GET', 'POST'])
@page_login_required
def edit_review(review_id):
    books = library_store.list_books()
    if request.method == 'GET':
        review = library_store.get_review(review_id)
        return render_template('admin/review_form.html', form=_review_form(review), books=books,
                               review_id=review_id)
    try:
        library_store.update_review(review_id, request.form.to_dict())
    except LibraryError as e:
        logger.warning(f"Review form rejected: {e.message}")
        return render_template('admin/review_form.html', form=request.form, books=books,
                               review_id=review_id, error=e.message), e.status_code
    flash("Review saved")
    return redirect(url_for('admin_pages.dashboard'))


@admin_pages_bp.route('/reviews/<review_id>/delete', methods=['POST'])
@page_login_required
def delete_review(review_id):
    library_store.delete_review(review_id)
    flash("Review deleted")
    return redirect(url_for('admin_pages.dashboard'))
