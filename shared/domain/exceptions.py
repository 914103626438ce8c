"""
Domain Errors

Every failure the booking and wallet domains report to callers derives from
DomainError. Each kind carries a stable machine code, a distinct user-facing
message and the HTTP status it maps to at the API boundary.
"""


class DomainError(Exception):
    code = 'domain_error'
    default_message = 'The request could not be completed.'
    http_status = 400

    def __init__(self, message: str | None = None, **context):
        self.message = message or self.default_message
        self.context = context
        super().__init__(self.message)

    def to_dict(self) -> dict:
        payload = {'code': self.code, 'detail': self.message}
        if self.context:
            payload['context'] = {key: str(value) for key, value in self.context.items()}
        return payload


class ReconciliationRequired(DomainError):
    """
    Money moved but the matching booking or ledger write did not happen and
    could not be compensated automatically. Needs an operator.
    """
    code = 'reconciliation_required'
    default_message = (
        'Your payment was taken but the operation could not be completed. '
        'Our team has been alerted and will resolve it.'
    )
    http_status = 500
