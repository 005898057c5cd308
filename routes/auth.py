"""Login, signup, logout and current-user routes."""

from flask import Blueprint, current_app, g, jsonify, redirect, url_for
from flask_login import login_user, logout_user
from flask_wtf import FlaskForm
from flask_wtf.csrf import generate_csrf
from wtforms import StringField, PasswordField
from wtforms.validators import DataRequired, Length, Regexp

from models.audit import AuditLog
from routes import strip_filter
from security import rate_limit, requires, get_client_ip
from services import get_services
from services.access import Identity, Operation
from services.errors import (
    DuplicateNameError, InvalidCredentialsError, InvalidRequestError, NotFoundError
)


auth_bp = Blueprint('auth', __name__)


class CredentialsForm(FlaskForm):
    """Username and password, shared by login and signup."""
    username = StringField('Username', filters=[strip_filter], validators=[
        DataRequired(message='Username is required'),
        Length(max=80, message='Username must be at most 80 characters'),
        Regexp(r'^[\w.-]+$', message='Username can only contain letters, numbers, dots, dashes and underscores')
    ])
    password = PasswordField('Password', validators=[
        DataRequired(message='Password is required')
    ])


def _validated_form():
    form = CredentialsForm()
    if not form.validate_on_submit():
        raise InvalidRequestError(details=form.errors)
    return form


@auth_bp.route('/signup', methods=['POST'])
@rate_limit('RATELIMIT_SIGNUP')
@requires(Operation.SIGNUP)
def signup():
    """Create an account. Does not log in."""
    form = _validated_form()
    user = get_services().credentials.register(form.username.data, form.password.data)

    AuditLog.log(
        action=AuditLog.ACTION_SIGNUP,
        user_id=user.id,
        ip_address=get_client_ip()
    )
    return user.to_dict(), 201


def _verify(services, name, password, client_ip):
    """Check the password, recording a failed attempt in the audit log."""
    try:
        return services.credentials.verify(name, password)
    except InvalidCredentialsError:
        known = services.credentials.find(name)
        AuditLog.log(
            action=AuditLog.ACTION_LOGIN_FAILED,
            user_id=known.id if known else None,
            details=f'Failed login for: {name}',
            ip_address=client_ip,
            status='failure'
        )
        raise


def _register_on_login(services, name, password, client_ip):
    try:
        user = services.credentials.register(name, password)
    except DuplicateNameError:
        # A concurrent signup or login created the name first
        return _verify(services, name, password, client_ip)

    AuditLog.log(
        action=AuditLog.ACTION_SIGNUP,
        user_id=user.id,
        details='Registered on first login',
        ip_address=client_ip
    )
    return user


@auth_bp.route('/login', methods=['POST'])
@rate_limit('RATELIMIT_LOGIN')
@requires(Operation.LOGIN)
def login():
    """
    Verify credentials and start a session.

    Unknown names are registered on the spot when AUTO_REGISTER is set;
    otherwise they get the same answer as a wrong password.
    """
    form = _validated_form()
    services = get_services()
    name = form.username.data
    password = form.password.data
    client_ip = get_client_ip()

    try:
        user = _verify(services, name, password, client_ip)
    except NotFoundError:
        if not current_app.config['AUTO_REGISTER']:
            AuditLog.log(
                action=AuditLog.ACTION_LOGIN_FAILED,
                details=f'Unknown user: {name}',
                ip_address=client_ip,
                status='failure'
            )
            raise InvalidCredentialsError()
        user = _register_on_login(services, name, password, client_ip)

    # A fresh login replaces whatever session the caller held
    if g.identity is not None:
        services.sessions.destroy(g.identity.token)

    token = services.sessions.create(user.name)
    login_user(Identity(user, token), remember=False)

    AuditLog.log(
        action=AuditLog.ACTION_LOGIN,
        user_id=user.id,
        ip_address=client_ip
    )
    return user.to_dict()


@auth_bp.route('/logout', methods=['POST'])
@requires(Operation.LOGOUT)
def logout():
    """End the session. Safe to call without one."""
    identity = g.identity
    if identity is not None:
        get_services().sessions.destroy(identity.token)
        AuditLog.log(
            action=AuditLog.ACTION_LOGOUT,
            user_id=identity.id,
            ip_address=get_client_ip()
        )

    logout_user()
    return redirect(url_for('auth.current_user_info'))


@auth_bp.route('/user')
@requires(Operation.CURRENT_USER)
def current_user_info():
    """The logged-in user, or an empty object for anonymous callers."""
    body = g.identity.user.to_dict() if g.identity is not None else {}
    response = jsonify(body)
    response.headers['X-CSRFToken'] = generate_csrf()
    return response
