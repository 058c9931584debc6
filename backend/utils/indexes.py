from pymongo import ASCENDING, DESCENDING
from pymongo.errors import OperationFailure


def _normalize_key_pairs(keys):
    return [(k, v) for k, v in keys]


async def _create_index_safe(collection, keys, **kwargs):
    """
    Create index safely.
    If Mongo reports IndexOptionsConflict/IndexKeySpecsConflict for same key pattern,
    drop the conflicting index and recreate with desired options.
    """
    desired_key = _normalize_key_pairs(keys)
    desired_name = kwargs.get("name")
    try:
        await collection.create_index(keys, **kwargs)
        return
    except OperationFailure as e:
        if getattr(e, "code", None) not in {85, 86}:
            raise

        conflicting_names = []
        async for idx in collection.list_indexes():
            idx_key = _normalize_key_pairs(list(idx.get("key", {}).items()))
            if idx_key == desired_key:
                idx_name = idx.get("name")
                if idx_name and idx_name != desired_name:
                    conflicting_names.append(idx_name)

        for idx_name in conflicting_names:
            await collection.drop_index(idx_name)

        await collection.create_index(keys, **kwargs)


async def ensure_indexes(db):
    # Users
    await _create_index_safe(
        db.users,
        [("email", ASCENDING)],
        name="users_email_unique_idx",
        unique=True,
    )

    # Cards
    await _create_index_safe(
        db.cards,
        [("player_name", ASCENDING)],
        name="cards_player_name_idx",
    )
    await _create_index_safe(
        db.cards,
        [("team", ASCENDING)],
        name="cards_team_idx",
    )
    await _create_index_safe(
        db.cards,
        [("manufacturer", ASCENDING), ("set_name", ASCENDING), ("card_number", ASCENDING)],
        name="cards_identity_idx",
    )
    await _create_index_safe(
        db.cards,
        [("year", ASCENDING)],
        name="cards_year_idx",
    )
    await _create_index_safe(
        db.cards,
        [("owner_id", ASCENDING), ("for_sale", ASCENDING)],
        name="cards_owner_for_sale_idx",
    )
    await _create_index_safe(
        db.cards,
        [("for_sale", ASCENDING), ("asking_price", ASCENDING)],
        name="cards_for_sale_price_idx",
    )
    await _create_index_safe(
        db.cards,
        [("created_at", DESCENDING)],
        name="cards_created_at_idx",
    )
    await _create_index_safe(
        db.cards,
        [("card_popularity", DESCENDING)],
        name="cards_popularity_idx",
    )

    # Delivery options
    await _create_index_safe(
        db.delivery_options,
        [("seller_id", ASCENDING), ("name", ASCENDING)],
        name="delivery_options_seller_name_unique",
        unique=True,
    )
    await _create_index_safe(
        db.delivery_options,
        [("seller_id", ASCENDING), ("price", ASCENDING)],
        name="delivery_options_seller_price_idx",
    )

    # Purchases
    await _create_index_safe(
        db.purchases,
        [("stripe_payment_intent_id", ASCENDING)],
        name="purchases_payment_intent_unique",
        unique=True,
    )
    await _create_index_safe(
        db.purchases,
        [("card_id", ASCENDING)],
        name="purchases_card_idx",
    )
    await _create_index_safe(
        db.purchases,
        [("buyer_id", ASCENDING), ("created_at", DESCENDING)],
        name="purchases_buyer_created_at_idx",
    )
    await _create_index_safe(
        db.purchases,
        [("seller_id", ASCENDING), ("created_at", DESCENDING)],
        name="purchases_seller_created_at_idx",
    )
