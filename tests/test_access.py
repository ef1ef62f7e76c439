from datetime import timedelta

import pytest

from partygames import db
from partygames.models import Family, Guest, GuestGameAccess, utcnow
from partygames.services.games import access
from partygames.services.games.access import (
    ensure_same_event, generate_game_access, provision_public_access, resolve_access,
)
from partygames.services.games.errors import CredentialInvalid, CredentialMissing, EventMismatch

from conftest import make_event, make_family_grant, make_game, make_guest_grant, make_organizer, make_qr


def test_missing_credentials(game):
    with pytest.raises(CredentialMissing):
        resolve_access(None, None, game.id)


def test_guest_token_resolves_to_individual(game):
    grant_row = make_guest_grant(game)
    grant = resolve_access(grant_row.access_token)
    assert grant.access_type == 'individual'
    assert grant.event_id == game.event_id
    assert grant.identity_key == f'guest:{grant_row.guest_id}'


def test_family_token_resolves_to_family(game):
    row = make_family_grant(game)
    grant = resolve_access(row.access_token)
    assert grant.access_type == 'family'
    assert grant.identity_key == f'family:{row.family_id}'


def test_unknown_token_is_rejected_without_provisioning(game):
    with pytest.raises(CredentialInvalid):
        resolve_access('nobody-knows-me', game_id=game.id)
    assert GuestGameAccess.query.count() == 0


def test_qr_code_for_guest_and_family(game, event):
    guest_row = make_guest_grant(game)
    family_row = make_family_grant(game)
    guest = db.session.get(Guest, guest_row.guest_id)
    make_qr(event, guest=guest, code='QR-G')
    qr_grant = resolve_access(qr_code='QR-G')
    # a QR grant and a token grant for the same guest share one identity
    assert qr_grant.identity_key == f'guest:{guest_row.guest_id}'

    family = db.session.get(Family, family_row.family_id)
    make_qr(event, family=family, code='QR-F')
    assert resolve_access(qr_code='QR-F').access_type == 'family'


def test_invalid_or_expired_qr_code(event, game):
    guest_row = make_guest_grant(game)
    guest = db.session.get(Guest, guest_row.guest_id)
    make_qr(event, guest=guest, code='QR-OLD', expires_at=utcnow() - timedelta(days=1))
    make_qr(event, guest=guest, code='QR-OFF', is_valid=False)
    for code in ('QR-OLD', 'QR-OFF', 'QR-MISSING'):
        with pytest.raises(CredentialInvalid):
            resolve_access(qr_code=code)


def test_qr_code_of_deactivated_guest_is_rejected(event, game):
    guest_row = make_guest_grant(game)
    guest = db.session.get(Guest, guest_row.guest_id)
    make_qr(event, guest=guest, code='QR-GONE')
    guest.is_active = False
    db.session.commit()
    with pytest.raises(CredentialInvalid):
        resolve_access(qr_code='QR-GONE')


def test_legacy_access_code_provisions_public_grant(event):
    game = make_game(event, settings={'accessCode': 'GAME-LEGACY1'})
    grant = resolve_access('GAME-LEGACY1', game_id=game.id)
    assert grant.access_type == 'public'
    assert grant.identity_key == 'token:GAME-LEGACY1'
    # second use finds the row instead of inserting again
    resolve_access('GAME-LEGACY1', game_id=game.id)
    assert GuestGameAccess.query.filter_by(access_token='GAME-LEGACY1').count() == 1


def test_public_game_provisions_well_formed_tokens_only(event):
    game = make_game(event, settings={'publicAccess': True})
    assert resolve_access('device-token-123', game_id=game.id).access_type == 'public'
    with pytest.raises(CredentialInvalid):
        resolve_access('bad token!', game_id=game.id)


def test_provisioning_can_be_disabled(flask_app, event):
    game = make_game(event, settings={'publicAccess': True})
    flask_app.config['PUBLIC_TOKEN_PROVISIONING'] = False
    assert provision_public_access(game, 'device-token-123') is None


def test_provisioning_race_reuses_winner_row(event):
    game = make_game(event, settings={'publicAccess': True})
    # another request inserted the same token first
    winner = GuestGameAccess(game_id=game.id, access_token='raced-token-1', is_public=True)
    db.session.add(winner)
    db.session.commit()
    row = provision_public_access(game, 'raced-token-1')
    assert row.id == winner.id
    assert GuestGameAccess.query.filter_by(access_token='raced-token-1').count() == 1


def test_event_mismatch_is_rejected(game):
    other_event = make_event(make_organizer('other@example.com'), name='Other party')
    other_game = make_game(other_event)
    grant = resolve_access(make_guest_grant(game).access_token)
    with pytest.raises(EventMismatch):
        ensure_same_event(grant, other_game)


def test_generate_access_issues_and_reuses_tokens(game):
    existing = make_guest_grant(game, first_name='Claire')
    make_family_grant(game, name='Dupont')
    db.session.add(Guest(event_id=game.event_id, first_name='NoQr'))
    db.session.commit()

    tokens = generate_game_access(game)
    kinds = sorted(t['type'] for t in tokens)
    assert kinds == ['family', 'individual']
    assert any(t['token'] == existing.access_token for t in tokens)

    again = generate_game_access(game)
    assert {t['token'] for t in again} == {t['token'] for t in tokens}


def test_default_player_names():
    assert access.AccessGrant('family', 1, family_id=2).default_player_name == 'Family'
    assert access.AccessGrant('public', 1, access_token='x').default_player_name == 'Player'
