from sqlalchemy.orm import Session

from models.settings import AccountSettings


def get_account_settings(db: Session) -> AccountSettings:
    """Return the shop settings row, creating it with defaults on first use."""
    row = db.query(AccountSettings).order_by(AccountSettings.id.asc()).first()
    if row is None:
        row = AccountSettings()
        db.add(row)
        db.commit()
        db.refresh(row)
    return row


def shop_identity(row: AccountSettings) -> dict:
    return {
        "business_name": row.business_name,
        "address": row.address,
        "phone": row.phone,
        "logo_url": row.logo_url,
    }
