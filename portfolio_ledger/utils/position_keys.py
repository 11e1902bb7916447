from typing import Optional, Tuple

POSITION_KEY_SEPARATOR = "|||"


def create_position_key(company: str, symbol: Optional[str]) -> str:
    """
    Live positions are keyed by company plus symbol, so two listings of the
    same company (dual-listed securities) are tracked separately.
    """
    return f"{company}{POSITION_KEY_SEPARATOR}{symbol}" if symbol else company


def parse_position_key(position_key: str) -> Tuple[str, str]:
    parts = position_key.split(POSITION_KEY_SEPARATOR)
    company = parts[0] if parts else ""
    symbol = parts[1] if len(parts) > 1 else ""
    return company, symbol
