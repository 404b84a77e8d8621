from datetime import datetime
from unittest.mock import patch

import pytest
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from huis.core.two_factor.exceptions import TwoFactorStoreUnavailable
from huis.core.two_factor.models import TwoFactorRecord
from huis.core.two_factor.store import TwoFactorStateStore

NOW = datetime(2001, 9, 9, 1, 46, 40)
SECRET = 'GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ'
CODES = ['ABCD1234', 'EFGH5678']


@pytest.fixture
def store() -> TwoFactorStateStore:
    return TwoFactorStateStore.factory()


class TestProvision:
    def test_creates_pending_record(self, store):
        record = store.provision('user-1', secret=SECRET, backup_codes=CODES, now=NOW)

        assert record.id.startswith('tfar-')
        assert record.shared_secret == SECRET
        assert record.backup_codes == CODES
        assert not record.is_enabled
        assert record.version == 1
        assert record.state == 'pending'

    def test_secret_is_encrypted_at_rest(self, store, db):
        store.provision('user-1', secret=SECRET, backup_codes=CODES, now=NOW)

        raw_secret = db.execute(
            text('SELECT shared_secret FROM twofactorrecord WHERE user_id = :user_id'), {'user_id': 'user-1'}
        ).scalar_one()
        assert raw_secret != SECRET
        assert raw_secret.startswith('gAAAAA')

    def test_reprovision_resets_enrollment(self, store):
        first = store.provision('user-1', secret=SECRET, backup_codes=CODES, now=NOW)
        store.compare_and_swap(first, now=NOW, is_enabled=True, last_used_at=NOW, last_verified_step=33333333)

        second = store.provision('user-1', secret='JBSWY3DPEHPK3PXP', backup_codes=['ZZZZ0000'], now=NOW)

        assert second.id == first.id
        assert second.shared_secret == 'JBSWY3DPEHPK3PXP'
        assert second.backup_codes == ['ZZZZ0000']
        assert not second.is_enabled
        assert second.last_used_at is None
        assert second.last_verified_step is None
        assert second.version == 3
        assert TwoFactorRecord.count(TwoFactorRecord.user_id == 'user-1') == 1

    def test_get_missing_is_none(self, store):
        assert store.get('user-nobody') is None


class TestCompareAndSwap:
    def test_swap_bumps_version(self, store):
        record = store.provision('user-1', secret=SECRET, backup_codes=CODES, now=NOW)

        assert store.compare_and_swap(record, now=NOW, is_enabled=True)

        updated = store.get('user-1')
        assert updated.is_enabled
        assert updated.version == record.version + 1
        assert updated.modified_at == NOW

    def test_only_one_of_two_stale_writers_wins(self, store):
        store.provision('user-1', secret=SECRET, backup_codes=CODES, now=NOW)
        first_read = store.get('user-1')
        second_read = store.get('user-1')

        assert store.compare_and_swap(first_read, now=NOW, backup_codes=['EFGH5678'])
        assert not store.compare_and_swap(second_read, now=NOW, backup_codes=['ABCD1234'])
        assert store.get('user-1').backup_codes == ['EFGH5678']

    def test_delete_is_versioned(self, store):
        record = store.provision('user-1', secret=SECRET, backup_codes=CODES, now=NOW)
        store.compare_and_swap(record, now=NOW, is_enabled=True)

        assert not store.delete(record)
        assert store.get('user-1') is not None

        assert store.delete(store.get('user-1'))
        assert store.get('user-1') is None

    def test_database_errors_become_store_unavailable(self, store):
        error = OperationalError('SELECT', {}, Exception('server closed the connection'))
        with patch.object(TwoFactorRecord, 'get_or_none', side_effect=error):
            with pytest.raises(TwoFactorStoreUnavailable):
                store.get('user-1')
