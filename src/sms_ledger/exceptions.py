from typing import Optional


class SMSLedgerError(Exception):
    pass


class MalformedMessageError(SMSLedgerError, ValueError):
    pass


class ConfigurationError(SMSLedgerError, ValueError):
    pass


class StoreError(SMSLedgerError):
    """Persistence failure with the owner and record it concerned"""

    def __init__(self, message: str, owner_id: Optional[str] = None,
                 raw_source: Optional[str] = None):
        self.owner_id = owner_id
        self.raw_source = raw_source

        context_parts = []
        if owner_id:
            context_parts.append(f"owner: {owner_id}")
        if raw_source:
            context_parts.append(f"record: {raw_source}")

        context = f" ({', '.join(context_parts)})" if context_parts else ""
        super().__init__(f"{message}{context}")
