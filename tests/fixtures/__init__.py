"""
Test Fixtures Module

YAML-based position scenarios (position_scenarios.yaml):
- Best for: input/output scenarios with clear parameter variations
- Human-readable, parseable, git-diff friendly
- Use load_position_scenarios() to get parsed PositionScenario objects

Each scenario lists its transactions in store order and the expected state of
positions, FIFO realized gains and closed-position classification.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
import yaml


FIXTURES_DIR = Path(__file__).parent


@dataclass
class ScenarioTrade:
    """Parsed trade from YAML."""
    id: int
    type: str
    company: str
    shares: Decimal
    price: Decimal
    date: date
    symbol: str = ""
    currency: str = "EUR"
    exchange_rate: Decimal = Decimal("1")
    commission: Decimal = Decimal("0")


@dataclass
class ExpectedPosition:
    """Parsed expected position state from YAML."""
    key: str
    shares: Decimal
    total_cost: Optional[Decimal] = None
    total_original_cost: Optional[Decimal] = None
    active: Optional[bool] = None


@dataclass
class ExpectedGain:
    """Parsed expected realized gain from YAML, matched by sale id."""
    sale_id: int
    cost_basis_eur: Optional[Decimal] = None
    net_sale_proceeds_eur: Optional[Decimal] = None
    gain_eur: Optional[Decimal] = None
    retention_eur: Optional[Decimal] = None
    unmatched_shares: Optional[Decimal] = None


@dataclass
class PositionScenario:
    """A single scenario parsed from YAML."""
    id: str
    description: str
    trades: List[ScenarioTrade]
    expected_positions: List[ExpectedPosition]
    expected_gains: List[ExpectedGain] = field(default_factory=list)
    expected_closed_ids: Optional[List[int]] = None
    expected_historical_pnl: Optional[Decimal] = None
    account_for_prior_sales: bool = False
    notes: Optional[str] = None


def _decimal_constructor(loader: yaml.SafeLoader, node: yaml.ScalarNode) -> Decimal:
    """YAML constructor for Decimal values."""
    value = loader.construct_scalar(node)
    return Decimal(str(value))


def _optional_decimal(d: Dict, key: str) -> Optional[Decimal]:
    return Decimal(str(d[key])) if key in d else None


def _parse_trade(trade_dict: Dict) -> ScenarioTrade:
    """Parse a trade dictionary into ScenarioTrade."""
    trade_date = trade_dict["date"]
    if not isinstance(trade_date, date):
        trade_date = date.fromisoformat(str(trade_date))
    return ScenarioTrade(
        id=int(trade_dict["id"]),
        type=trade_dict["type"],
        company=trade_dict["company"],
        shares=Decimal(str(trade_dict["shares"])),
        price=Decimal(str(trade_dict["price"])),
        date=trade_date,
        symbol=trade_dict.get("symbol", ""),
        currency=trade_dict.get("currency", "EUR"),
        exchange_rate=Decimal(str(trade_dict.get("exchange_rate", "1"))),
        commission=Decimal(str(trade_dict.get("commission", "0"))),
    )


def _parse_expected_position(pos_dict: Dict) -> ExpectedPosition:
    return ExpectedPosition(
        key=pos_dict["key"],
        shares=Decimal(str(pos_dict["shares"])),
        total_cost=_optional_decimal(pos_dict, "total_cost"),
        total_original_cost=_optional_decimal(pos_dict, "total_original_cost"),
        active=pos_dict.get("active"),
    )


def _parse_expected_gain(gain_dict: Dict) -> ExpectedGain:
    return ExpectedGain(
        sale_id=int(gain_dict["sale_id"]),
        cost_basis_eur=_optional_decimal(gain_dict, "cost_basis_eur"),
        net_sale_proceeds_eur=_optional_decimal(gain_dict, "net_sale_proceeds_eur"),
        gain_eur=_optional_decimal(gain_dict, "gain_eur"),
        retention_eur=_optional_decimal(gain_dict, "retention_eur"),
        unmatched_shares=_optional_decimal(gain_dict, "unmatched_shares"),
    )


def load_yaml_fixture(filename: str) -> Dict[str, Any]:
    """
    Load a YAML fixture file.

    Args:
        filename: Name of the YAML file in the fixtures directory

    Returns:
        Parsed YAML content as a dictionary
    """
    filepath = FIXTURES_DIR / filename

    # Register Decimal constructor for numeric values
    yaml.add_constructor("!decimal", _decimal_constructor, Loader=yaml.SafeLoader)

    with open(filepath, "r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def parse_scenario(raw: Dict[str, Any]) -> PositionScenario:
    """Parse one raw YAML scenario into a PositionScenario."""
    expected = raw.get("expected", {})
    return PositionScenario(
        id=raw["id"],
        description=raw.get("description", ""),
        trades=[_parse_trade(t) for t in raw.get("trades", [])],
        expected_positions=[_parse_expected_position(p) for p in expected.get("positions", [])],
        expected_gains=[_parse_expected_gain(g) for g in expected.get("gains", [])],
        expected_closed_ids=expected.get("closed_ids"),
        expected_historical_pnl=_optional_decimal(expected, "historical_pnl"),
        account_for_prior_sales=bool(raw.get("account_for_prior_sales", False)),
        notes=raw.get("notes"),
    )


def load_position_scenarios(filename: str = "position_scenarios.yaml") -> List[PositionScenario]:
    """Load and parse every scenario of a YAML scenario file."""
    content = load_yaml_fixture(filename)
    return [parse_scenario(s) for s in content.get("scenarios", [])]
