# tests/unit/test_session_state.py
from app.services.session_state import SessionStateService


def test_same_session_id_shares_caches():
    svc = SessionStateService(capacity=4)
    assert svc.get("s1") is svc.get("s1")
    assert svc.get("s1") is not svc.get("s2")
    assert len(svc) == 2

def test_missing_session_id_gets_throwaway_caches():
    svc = SessionStateService(capacity=4)
    assert svc.get(None) is not svc.get(None)
    assert len(svc) == 0

def test_registry_is_bounded_and_resettable():
    svc = SessionStateService(capacity=2)
    s1 = svc.get("s1"); svc.get("s2"); svc.get("s3")
    assert len(svc) == 2
    assert svc.get("s1") is not s1
    svc.reset("s1")
    assert len(svc) == 1
