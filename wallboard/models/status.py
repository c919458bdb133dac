"""
wallboard/models/status.py
Status taxonomy used by Taxiportalen. Membership is set lookup only —
the engine never interprets status text beyond these tables.
"""

from typing import Dict, FrozenSet

SENDING_STATUS = 'UNDER SENDING'
CHANGED_STATUS = 'ENDRET'
MANUAL_STATUS  = 'BEH.MANUELT'
INVOICE_READY  = 'KLAR FOR FAKTURERING'

COMPLETED_STATUSES: FrozenSet[str] = frozenset({
    'JA-SVAR',
    INVOICE_READY,
    'KONTANT',
    'KREDITT',
})

STATUS_SLUGS: Dict[str, str] = {
    SENDING_STATUS: 'under-sending',
    'JA-SVAR':      'ja-svar',
    INVOICE_READY:  'klar-fakturering',
    'KONTANT':      'kontant',
    'KREDITT':      'kreditt',
    CHANGED_STATUS: 'endret',
    MANUAL_STATUS:  'beh-manuelt',
    'ADD-ONS':      'add-ons',
}

KNOWN_STATUSES: FrozenSet[str] = frozenset(STATUS_SLUGS)


def is_completed(status: str) -> bool:
    return status in COMPLETED_STATUSES


def is_sending(status: str) -> bool:
    return status == SENDING_STATUS


def status_slug(status: str) -> str:
    return STATUS_SLUGS.get(status, 'default')


def classify_status(status: str) -> str:
    """Return sending / completed / changed / manual / other."""
    if status == SENDING_STATUS:
        return 'sending'
    if status in COMPLETED_STATUSES:
        return 'completed'
    if status == CHANGED_STATUS:
        return 'changed'
    if status == MANUAL_STATUS:
        return 'manual'
    return 'other'
