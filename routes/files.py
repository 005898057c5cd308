"""Upload, listing, download and activity-log routes."""

from flask import Blueprint, current_app, g, jsonify, request, send_file
from flask_wtf import FlaskForm
from flask_wtf.file import FileField, FileRequired
from wtforms import StringField
from wtforms.validators import Length, Optional

from models.audit import AuditLog
from routes import strip_filter
from security import current_token, get_client_ip, rate_limit, requires
from services import get_services
from services.access import Operation
from services.content import Direction
from services.errors import (
    InvalidRequestError, UnknownRecipientError, UnsupportedTypeError
)


files_bp = Blueprint('files', __name__)


class UploadForm(FlaskForm):
    """Multipart upload with an optional recipient."""
    file = FileField('File', validators=[FileRequired(message='A file is required')])
    recipient = StringField('Recipient', filters=[strip_filter], validators=[
        Optional(),
        Length(max=80)
    ])


@files_bp.route('/upload', methods=['POST'])
@rate_limit('RATELIMIT_UPLOAD')
@requires(Operation.UPLOAD)
def upload_file():
    """Store an uploaded file and return its content item."""
    form = UploadForm()
    if not form.validate_on_submit():
        raise InvalidRequestError(details=form.errors)

    upload = form.file.data
    recipient = form.recipient.data or None
    identity = g.identity

    try:
        item = get_services().content.store(
            identity.name, recipient, upload.read(), upload.mimetype, upload.filename
        )
    except (UnknownRecipientError, UnsupportedTypeError) as e:
        AuditLog.log(
            action=AuditLog.ACTION_UPLOAD_REJECTED,
            user_id=identity.id,
            details=f'{e.error_code}: {upload.filename}',
            ip_address=get_client_ip(),
            status='failure'
        )
        raise

    AuditLog.log(
        action=AuditLog.ACTION_UPLOAD,
        user_id=identity.id,
        item_id=item.id,
        details=f'Uploaded: {item.original_filename} ({item.size} bytes)',
        ip_address=get_client_ip()
    )
    return item.to_dict(), 201


@files_bp.route('/photos')
@files_bp.route('/files')
@requires(Operation.LIST)
def list_items():
    direction = Direction.parse(request.args.get('direction'))
    items = get_services().content.list_for(g.identity.name, direction)
    return jsonify([item.to_dict() for item in items])


@files_bp.route('/content/<int:item_id>')
@requires(Operation.READ_ITEM)
def download_item(item_id):
    """Send the stored file to its sender or recipient."""
    services = get_services()
    item = services.content.get(item_id)
    identity = services.access.authorize(current_token(), Operation.READ_ITEM, item=item)

    path = services.content.path_for(item)

    AuditLog.log(
        action=AuditLog.ACTION_DOWNLOAD,
        user_id=identity.id,
        item_id=item.id,
        details=f'Downloaded: {item.original_filename}',
        ip_address=get_client_ip()
    )
    return send_file(
        path,
        mimetype=item.mime_type or 'application/octet-stream',
        as_attachment=True,
        download_name=item.original_filename
    )


@files_bp.route('/logs')
@requires(Operation.AUDIT_LOG)
def activity_logs():
    """The caller's audit trail, newest first."""
    page = request.args.get('page', 1, type=int)
    logs = AuditLog.query.filter_by(user_id=g.identity.id)\
        .order_by(AuditLog.timestamp.desc(), AuditLog.id.desc())\
        .paginate(page=page, per_page=current_app.config['AUDIT_PAGE_SIZE'], error_out=False)

    return {
        'items': [entry.to_dict() for entry in logs.items],
        'page': logs.page,
        'pages': logs.pages,
        'total': logs.total,
    }
