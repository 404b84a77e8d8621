from datetime import datetime, timedelta
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from huis.core.two_factor.auditor import AttemptAuditor
from huis.core.two_factor.constants import AttemptMethodEnum
from huis.core.two_factor.exceptions import TwoFactorStoreUnavailable
from huis.core.two_factor.models import TwoFactorAttempt
from huis.network.database.repository.exceptions import AppendOnlyModel

NOW = datetime(2001, 9, 9, 1, 46, 40)


class TestAttemptAuditor:
    def test_record_and_list_newest_first(self):
        auditor = AttemptAuditor.factory()
        auditor.record('user-1', AttemptMethodEnum.TOTP, success=False, attempted_at=NOW)
        auditor.record(
            'user-1',
            AttemptMethodEnum.BACKUP_CODE,
            success=True,
            attempted_at=NOW + timedelta(seconds=5),
            origin_context={'ip_address': '10.0.0.1', 'action': 'use_backup'},
        )
        auditor.record('user-2', AttemptMethodEnum.TOTP, success=True, attempted_at=NOW)

        attempts = auditor.list_for_user('user-1')

        assert [attempt.method for attempt in attempts] == ['backup_code', 'totp']
        assert attempts[0].success
        assert attempts[0].origin_context == {'ip_address': '10.0.0.1', 'action': 'use_backup'}
        assert attempts[1].origin_context == {}

    def test_count_recent_failures(self):
        auditor = AttemptAuditor.factory()
        for seconds in (0, 10, 20):
            auditor.record('user-1', AttemptMethodEnum.TOTP, success=False, attempted_at=NOW + timedelta(seconds=seconds))
        auditor.record('user-1', AttemptMethodEnum.TOTP, success=True, attempted_at=NOW + timedelta(seconds=30))

        assert auditor.count_recent_failures('user-1', since=NOW + timedelta(seconds=10)) == 2

    def test_entries_are_append_only(self):
        entry = AttemptAuditor.factory().record('user-1', AttemptMethodEnum.TOTP, success=True, attempted_at=NOW)

        with pytest.raises(AppendOnlyModel):
            TwoFactorAttempt.update(entry.id, success=False)
        with pytest.raises(AppendOnlyModel):
            TwoFactorAttempt.conditional_update([TwoFactorAttempt.id == entry.id], {'success': False})
        with pytest.raises(AppendOnlyModel):
            TwoFactorAttempt.delete(TwoFactorAttempt.id == entry.id)
        with pytest.raises(AppendOnlyModel):
            TwoFactorAttempt.conditional_delete([TwoFactorAttempt.id == entry.id])

        assert AttemptAuditor.factory().list_for_user('user-1')[0].success

    def test_write_failure_becomes_store_unavailable(self):
        error = OperationalError('INSERT', {}, Exception('disk I/O error'))
        with patch.object(TwoFactorAttempt, 'create', side_effect=error):
            with pytest.raises(TwoFactorStoreUnavailable):
                AttemptAuditor.factory().record('user-1', AttemptMethodEnum.TOTP, success=True, attempted_at=NOW)

    def test_read_failures_become_store_unavailable(self):
        auditor = AttemptAuditor.factory()
        error = OperationalError('SELECT', {}, Exception('canceling statement due to statement timeout'))

        with patch.object(TwoFactorAttempt, 'list', side_effect=error):
            with pytest.raises(TwoFactorStoreUnavailable):
                auditor.list_for_user('user-1')
        with patch.object(TwoFactorAttempt, 'count', side_effect=error):
            with pytest.raises(TwoFactorStoreUnavailable):
                auditor.count_recent_failures('user-1', since=NOW)
