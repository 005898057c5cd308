"""Uploaded content items and their files on disk."""

import enum
import logging
import os
import re
import tempfile

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.utils import secure_filename

from models.content import ContentItem
from services.errors import (
    InvalidRequestError, NotAuthenticatedError, NotFoundError, StorageFault,
    UnknownRecipientError, UnsupportedTypeError
)


logger = logging.getLogger(__name__)

MAX_FILENAME_LENGTH = 255
MAX_EXTENSION_LENGTH = 16
SAFE_EXTENSION = re.compile(r'\.[A-Za-z0-9_-]+')


class Direction(enum.Enum):
    RECEIVED = 'received'
    SENT = 'sent'
    ALL = 'all'

    @classmethod
    def parse(cls, value):
        if value is None or value == '':
            return cls.RECEIVED
        try:
            return cls(value.lower())
        except ValueError:
            choices = ', '.join(d.value for d in cls)
            raise InvalidRequestError(
                f'direction must be one of: {choices}', details={'direction': value}
            )


def sanitize_filename(filename):
    """
    Strip path components and suspicious characters from a client filename.

    Returns an empty string when nothing usable remains.
    """
    filename = secure_filename(filename or '')
    filename = re.sub(r'[^\w\-\.]', '', filename)

    if len(filename) > MAX_FILENAME_LENGTH:
        name, ext = os.path.splitext(filename)
        filename = name[:MAX_FILENAME_LENGTH - len(ext)] + ext
    return filename


def split_filename(filename):
    """
    Split a client filename into a sanitized base name and extension.

    The extension is taken before sanitizing so that names whose base is
    entirely non-ASCII (which ``secure_filename`` empties) keep it. An
    extension that is too long or has unsafe characters is dropped.
    """
    name = os.path.basename((filename or '').replace('\\', '/'))
    base, ext = os.path.splitext(name)
    if len(ext) > MAX_EXTENSION_LENGTH or not SAFE_EXTENSION.fullmatch(ext):
        base, ext = name, ''

    base = sanitize_filename(base)[:MAX_FILENAME_LENGTH - len(ext)] or 'unnamed'
    return base, ext


class ContentStore:
    """
    Stores uploads under ``root`` and records them as ContentItem rows.

    Stored names look like ``<prefix><random><ext>``. They are allocated with
    ``tempfile.mkstemp``, which creates the file exclusively, so an existing
    file is never overwritten even when uploads race.
    """

    def __init__(self, db, credentials, root, prefix='upload_',
                 allowed_mime_prefixes=('image/',)):
        self.db = db
        self.credentials = credentials
        self.root = os.path.abspath(root)
        self.prefix = prefix
        self.allowed_mime_prefixes = tuple(allowed_mime_prefixes or ())

    def is_allowed_type(self, mime_type):
        if not self.allowed_mime_prefixes:
            return True
        mime_type = (mime_type or '').lower()
        return any(mime_type.startswith(p) for p in self.allowed_mime_prefixes)

    def store(self, sender_name, recipient_name, content, mime_type, original_filename):
        """
        Validate an upload, write it to disk and persist its row.

        Nothing is written unless the sender, recipient and type all check
        out. The file is written before the row is committed; on any failure
        after allocation the file is removed again.

        Raises:
            NotAuthenticatedError: ``sender_name`` is not a known user.
            UnknownRecipientError: ``recipient_name`` is given but unknown.
            UnsupportedTypeError: ``mime_type`` is not allowed here.
            StorageFault: the file or the row could not be persisted.
        """
        sender = self.credentials.find(sender_name)
        if sender is None:
            raise NotAuthenticatedError()

        recipient = None
        if recipient_name:
            recipient = self.credentials.find(recipient_name)
            if recipient is None:
                raise UnknownRecipientError(details={'recipient': recipient_name})

        if not self.is_allowed_type(mime_type):
            raise UnsupportedTypeError(
                details={'mimeType': mime_type, 'allowed': list(self.allowed_mime_prefixes)}
            )

        base, ext = split_filename(original_filename)
        original = base + ext
        path = self._write(content, ext.lower())

        item = ContentItem(
            sender_id=sender.id,
            recipient_id=recipient.id if recipient else None,
            stored_filename=os.path.basename(path),
            original_filename=original,
            mime_type=mime_type,
            size=len(content),
        )
        self.db.session.add(item)
        try:
            self.db.session.commit()
        except SQLAlchemyError as exc:
            self.db.session.rollback()
            self._discard(path)
            logger.exception('Could not record upload %s', path)
            raise StorageFault() from exc

        logger.info(
            'Stored %s as %s (%d bytes) from %s to %s',
            original, item.stored_filename, item.size, sender.name,
            recipient.name if recipient else '-'
        )
        return item

    def list_for(self, user_name, direction=Direction.RECEIVED):
        """Return the items ``user_name`` received, sent, or both, newest first."""
        user = self.credentials.find(user_name)
        if user is None:
            raise NotAuthenticatedError()

        if direction is Direction.RECEIVED:
            criteria = ContentItem.recipient_id == user.id
        elif direction is Direction.SENT:
            criteria = ContentItem.sender_id == user.id
        else:
            criteria = or_(
                ContentItem.sender_id == user.id,
                ContentItem.recipient_id == user.id
            )

        return ContentItem.query.filter(criteria)\
            .order_by(ContentItem.uploaded_at.desc(), ContentItem.id.desc())\
            .all()

    def get(self, item_id):
        item = self.db.session.get(ContentItem, item_id)
        if item is None:
            raise NotFoundError('Content item not found', details={'id': item_id})
        return item

    def path_for(self, item):
        """Absolute path of the file backing ``item``."""
        path = os.path.join(self.root, item.stored_filename)
        if not os.path.isfile(path):
            logger.error('Content item %s has no file at %s', item.id, path)
            raise StorageFault('Stored file is missing')
        return path

    def _write(self, content, suffix):
        try:
            os.makedirs(self.root, exist_ok=True)
            fd, path = tempfile.mkstemp(prefix=self.prefix, suffix=suffix, dir=self.root)
        except OSError as exc:
            logger.exception('Could not allocate a file under %s', self.root)
            raise StorageFault() from exc

        try:
            # mkstemp leaves the file 0600; downloads are served by this process
            with os.fdopen(fd, 'wb') as f:
                f.write(content)
        except OSError as exc:
            self._discard(path)
            logger.exception('Could not write %s', path)
            raise StorageFault() from exc
        return path

    @staticmethod
    def _discard(path):
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
