"""Resolve guest credentials (access token or invitation QR code) to a grant.

Resolution never creates anything. Turning an unknown token into a public
grant is the separate `provision_public_access` operation, which the
resolver only calls for a game that explicitly allows it.
"""

import re
import secrets
from dataclasses import dataclass
from typing import Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError

from partygames import db
from partygames.models import (
    FamilyGameAccess, Family, Game, Guest, GuestGameAccess, Participation, QRCode,
)
from .errors import AlreadyPlayed, CredentialInvalid, CredentialMissing, EventMismatch

PUBLIC_TOKEN_PATTERN = re.compile(r'[A-Za-z0-9_\-]{8,128}')

DEFAULT_PLAYER_NAMES = {
    'family': 'Family',
    'individual': 'Guest',
    'public': 'Player',
}


@dataclass
class AccessGrant:
    access_type: str  # individual, family, public
    event_id: int
    guest_id: Optional[int] = None
    family_id: Optional[int] = None
    access_token: Optional[str] = None
    qr_code: Optional[str] = None
    record: Optional[object] = None  # backing GuestGameAccess / FamilyGameAccess row

    @property
    def identity_key(self) -> str:
        if self.access_type == 'family' and self.family_id is not None:
            return f'family:{self.family_id}'
        if self.access_type == 'individual' and self.guest_id is not None:
            return f'guest:{self.guest_id}'
        return f'token:{self.access_token}'

    @property
    def default_player_name(self) -> str:
        return DEFAULT_PLAYER_NAMES.get(self.access_type, 'Player')

    @property
    def has_played(self) -> bool:
        return bool(self.record is not None and self.record.has_played)


def _grant_from_guest_access(row: GuestGameAccess) -> AccessGrant:
    return AccessGrant(
        access_type='public' if row.is_public else 'individual',
        event_id=row.game.event_id,
        guest_id=row.guest_id,
        access_token=row.access_token,
        qr_code=row.qr_code,
        record=row,
    )


def _grant_from_family_access(row: FamilyGameAccess) -> AccessGrant:
    return AccessGrant(
        access_type='family',
        event_id=row.game.event_id,
        family_id=row.family_id,
        access_token=row.access_token,
        qr_code=row.qr_code,
        record=row,
    )


def _grant_from_token(access_token: str, game_id=None) -> Optional[AccessGrant]:
    row = GuestGameAccess.query.filter_by(access_token=access_token).first()
    if row:
        return _grant_from_guest_access(row)
    family_row = FamilyGameAccess.query.filter_by(access_token=access_token).first()
    if family_row:
        return _grant_from_family_access(family_row)
    if game_id is None:
        return None
    game = db.session.get(Game, game_id)
    if not game:
        return None
    provisioned = provision_public_access(game, access_token)
    return _grant_from_guest_access(provisioned) if provisioned else None


def _grant_from_qr(qr_code: str) -> AccessGrant:
    qr = QRCode.query.filter_by(code=qr_code).first()
    if not qr or not qr.is_usable():
        raise CredentialInvalid('Invalid or expired QR code')
    if qr.family_id and db.session.get(Family, qr.family_id):
        return AccessGrant(access_type='family', event_id=qr.event_id, family_id=qr.family_id, qr_code=qr_code)
    guest = db.session.get(Guest, qr.guest_id) if qr.guest_id else None
    if guest is not None and guest.is_active:
        return AccessGrant(access_type='individual', event_id=qr.event_id, guest_id=qr.guest_id, qr_code=qr_code)
    raise CredentialInvalid('Invalid or expired QR code')


def resolve_access(access_token=None, qr_code=None, game_id=None) -> AccessGrant:
    if not access_token and not qr_code:
        raise CredentialMissing()

    grant = None
    if access_token:
        grant = _grant_from_token(access_token, game_id)
    if grant is None and qr_code:
        grant = _grant_from_qr(qr_code)
    if grant is None:
        raise CredentialInvalid()
    return grant


def provision_public_access(game: Game, access_token: str) -> Optional[GuestGameAccess]:
    """Create a public grant for an unregistered token, when the game allows it.

    Two token shapes qualify: the game's legacy shared `accessCode`, or any
    well-formed token for a game with `publicAccess` enabled. Safe under
    concurrent first use: a lost insert race re-reads the winner's row.
    """
    if not current_app.config.get('PUBLIC_TOKEN_PROVISIONING', True) or not game.is_active:
        return None
    legacy_code = game.setting('accessCode')
    if legacy_code and access_token == legacy_code:
        reason = 'legacy-access-code'
    elif game.setting('publicAccess') and PUBLIC_TOKEN_PATTERN.fullmatch(access_token):
        reason = 'public-token'
    else:
        return None

    row = GuestGameAccess(
        game_id=game.id,
        guest_id=None,
        access_token=access_token,
        is_public=True,
        qr_code=f'QR-PUBLIC-{game.id}',
    )
    try:
        db.session.add(row)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        row = GuestGameAccess.query.filter_by(access_token=access_token).first()
        current_app.logger.info(f"[access-provision] game={game.id} reason={reason} raced, reusing existing grant")
        return row
    current_app.logger.info(f"[access-provision] game={game.id} grant={row.id} reason={reason}")
    return row


def ensure_same_event(grant: AccessGrant, game: Game) -> None:
    if game.event_id != grant.event_id:
        current_app.logger.warning(
            f"[idor] grant for event={grant.event_id} tried game={game.id} of event={game.event_id}"
        )
        raise EventMismatch()


def find_completed_participation(game_id, grant: AccessGrant) -> Optional[Participation]:
    return Participation.query.filter_by(
        game_id=game_id, identity_key=grant.identity_key, is_completed=True
    ).first()


def ensure_not_played(game_id, grant: AccessGrant) -> None:
    previous = find_completed_participation(game_id, grant)
    if previous is not None:
        raise AlreadyPlayed(previous)


def generate_game_access(game: Game):
    """Issue one access token per guest and per family of the game's event.

    Only invitees holding an invitation QR code get a token. An existing
    grant for the same game is reused rather than duplicated.
    """
    tokens = []
    guests = Guest.query.filter_by(event_id=game.event_id, is_active=True).order_by(Guest.id).all()
    for guest in guests:
        if not guest.qr_code:
            continue
        row = GuestGameAccess.query.filter_by(game_id=game.id, guest_id=guest.id).first()
        if row is None:
            row = GuestGameAccess(
                game_id=game.id,
                guest_id=guest.id,
                qr_code=guest.qr_code,
                access_token=secrets.token_urlsafe(32),
            )
            db.session.add(row)
        tokens.append({
            'guestId': guest.id,
            'guestName': guest.full_name,
            'token': row.access_token,
            'type': 'individual',
        })

    families = Family.query.filter_by(event_id=game.event_id).order_by(Family.id).all()
    for family in families:
        if not family.qr_code:
            continue
        row = FamilyGameAccess.query.filter_by(game_id=game.id, family_id=family.id).first()
        if row is None:
            row = FamilyGameAccess(
                game_id=game.id,
                family_id=family.id,
                qr_code=family.qr_code,
                access_token=secrets.token_urlsafe(32),
            )
            db.session.add(row)
        tokens.append({
            'familyId': family.id,
            'familyName': family.name,
            'token': row.access_token,
            'type': 'family',
        })

    db.session.commit()
    return tokens
