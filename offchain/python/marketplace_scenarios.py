"""
Marketplace Scenario Catalogue

The scenarios compared between NFTMarketplace_Before and NFTMarketplace_After.
Listing ids are assigned sequentially from 0 by both contracts, so
`buyItem(0)` buys the first listing created in the scenario.

Accounts: accounts[0] owns/deploys, accounts[1] sells, accounts[2] buys.
"""

from typing import Dict, List, Optional, Sequence

from basic_data_structure import CallMode, ComparisonShape, Operation
from benchmark_config import BenchmarkConfig, get_benchmark_config
from scenario_runner import BatchPlan, Scenario


def _list_items(count: int, price: int, seller) -> List[Operation]:
    return [Operation('listItem', (token_id, price), sender=seller) for token_id in range(count)]


def build_scenarios(accounts: Sequence, config: Optional[BenchmarkConfig] = None) -> Dict[str, Scenario]:
    if len(accounts) < 3:
        raise ValueError(f"Marketplace scenarios need 3 accounts (owner, seller, buyer), got {len(accounts)}")
    config = config or get_benchmark_config()
    _, seller, buyer = accounts[0], accounts[1], accounts[2]
    price = config.listing_price_wei
    small_price = config.small_price_wei

    scenarios = [
        Scenario(
            name='deployment',
            title='Deployment cost',
            measure_deployment=True,
            description='Gas used by the contract creation transaction of each variant',
        ),
        Scenario(
            name='list_item',
            title='listItem (single call)',
            operations=(Operation('listItem', (1, price), sender=seller),),
        ),
        Scenario(
            name='buy_item',
            title='buyItem',
            setup=(Operation('listItem', (1, price), sender=seller),),
            operations=(Operation('buyItem', (0,), value=price, sender=buyer),),
        ),
        Scenario(
            name='get_user_listings',
            title=f'getUserListings ({config.enumeration_items} items, estimated)',
            setup=tuple(_list_items(config.enumeration_items, small_price, seller)),
            operations=(Operation('getUserListings', (seller,), mode=CallMode.ESTIMATE),),
        ),
        Scenario(
            name='batch_cancel_listings',
            title=f'batchCancelListings ({config.batch_cancel_items} items)',
            setup=tuple(_list_items(config.batch_cancel_items, small_price, seller)),
            operations=(
                Operation('batchCancelListings', (list(range(config.batch_cancel_items)),), sender=seller),
            ),
        ),
        Scenario(
            name='batch_list_items',
            title=f'Batch listing efficiency ({config.batch_list_items} items)',
            shape=ComparisonShape.BATCH_VS_SINGLE,
            batch=BatchPlan(
                label='batchListItems',
                individual=tuple(_list_items(config.batch_list_items, small_price, seller)),
                batched=Operation(
                    'batchListItems',
                    (list(range(config.batch_list_items)), [small_price] * config.batch_list_items),
                    sender=seller,
                ),
            ),
            description=f'{config.batch_list_items} individual listItem calls vs one batchListItems call',
        ),
        Scenario(
            name='full_flow',
            title='Full flow: list two items -> buy first -> cancel second',
            shape=ComparisonShape.AGGREGATE,
            operations=(
                Operation('listItem', (1, price), sender=seller),
                Operation('listItem', (2, price), sender=seller),
                Operation('buyItem', (0,), value=price, sender=buyer),
                Operation('cancelListing', (1,), sender=seller),
            ),
        ),
    ]
    return {scenario.name: scenario for scenario in scenarios}


SCENARIO_NAMES = (
    'deployment',
    'list_item',
    'buy_item',
    'get_user_listings',
    'batch_cancel_listings',
    'batch_list_items',
    'full_flow',
)


def get_scenarios(accounts: Sequence, config: Optional[BenchmarkConfig] = None,
                  names: Optional[Sequence[str]] = None) -> List[Scenario]:
    """Scenarios in catalogue order, or in the order given by `names`."""
    catalogue = build_scenarios(accounts, config)
    if names is None:
        return list(catalogue.values())
    unknown = [name for name in names if name not in catalogue]
    if unknown:
        raise KeyError(f"Unknown scenario(s): {', '.join(unknown)}. Available: {', '.join(catalogue)}")
    return [catalogue[name] for name in names]


def get_scenario_by_name(name: str, accounts: Sequence, config: Optional[BenchmarkConfig] = None) -> Scenario:
    return get_scenarios(accounts, config, [name])[0]
