from flask import (Blueprint, render_template, redirect, url_for, flash,
                   request, make_response, session)
from urllib.parse import urlparse

from gamebrain.decorators import SESSION_COOKIE_KEY, redirect_if_logged_in
from gamebrain.forms import RegistrationForm, LoginForm
from gamebrain.identity import AuthError, register_user, sign_in

bp = Blueprint('auth', __name__, url_prefix='/auth')

REMEMBER_EMAIL_COOKIE = 'saved_email'


def is_safe_url(target):
    if not target:
        return False
    ref_url = urlparse(request.host_url)
    test_url = urlparse(target)
    return test_url.scheme in ('', 'http', 'https') and ref_url.netloc == test_url.netloc


@bp.route('/register', methods=['GET', 'POST'])
@redirect_if_logged_in
def register():
    form = RegistrationForm()
    if form.validate_on_submit():
        try:
            register_user(form.email.data, form.password.data, form.username.data)
            session[SESSION_COOKIE_KEY] = sign_in(form.email.data, form.password.data)
        except AuthError as e:
            flash(e.message, 'error')
            return render_template('auth/register.html', form=form)

        flash('Account created! Welcome to GameBrain 🎮', 'success')
        return redirect(url_for('dashboard.index'))

    return render_template('auth/register.html', form=form)


@bp.route('/login', methods=['GET', 'POST'])
@redirect_if_logged_in
def login():
    form = LoginForm()

    saved_email = request.cookies.get(REMEMBER_EMAIL_COOKIE, '')
    if request.method == 'GET' and saved_email:
        form.email.data = saved_email
        form.remember_id.data = True

    if form.validate_on_submit():
        try:
            session[SESSION_COOKIE_KEY] = sign_in(form.email.data, form.password.data)
        except AuthError as e:
            flash(e.message, 'error')
            return render_template('auth/login.html', form=form)

        flash('Signed in! Good to see you again 👾', 'success')
        next_page = request.args.get('next')
        if next_page and is_safe_url(next_page):
            response = make_response(redirect(next_page))
        else:
            response = make_response(redirect(url_for('dashboard.index')))

        if form.remember_id.data:
            response.set_cookie(
                REMEMBER_EMAIL_COOKIE, str(form.email.data),
                max_age=60 * 60 * 24 * 365,
            )
        else:
            response.delete_cookie(REMEMBER_EMAIL_COOKIE)
        return response

    return render_template('auth/login.html', form=form)


@bp.route('/logout')
def logout():
    session.pop(SESSION_COOKIE_KEY, None)
    flash('Signed out. See you soon!', 'info')
    return redirect(url_for('main.index'))
