import pytest

from models.transaction import Transaction


def test_create_and_list(tx_service):
    tx = tx_service.create("u1", 250.0, "Lunch", "2024-06-04", "Food", "expense")
    assert tx.id is not None
    assert tx_service.list_on_date("u1", "2024-06-04") == [tx]
    assert tx_service.list_for_user("u2") == []
    assert tx_service.list_for_user("u1", month="2024-06") == [tx]
    assert tx_service.list_for_user("u1", month="2024-07") == []


def test_create_normalizes_date(tx_service):
    tx = tx_service.create("u1", 10.0, "Tea", "2024/06/04", "Food", "expense")
    assert tx.date == "2024-06-04"


@pytest.mark.parametrize("amount,date,type_", [
    (0, "2024-06-04", "expense"),
    (10.0, "yesterday", "expense"),
    (10.0, "2024-06-04", "transfer"),
])
def test_create_validation(tx_service, amount, date, type_):
    with pytest.raises(ValueError):
        tx_service.create("u1", amount, "Tea", date, "Food", type_)


def test_update_and_delete(tx_service):
    tx = tx_service.create("u1", 10.0, "Tea", "2024-06-04", "Food", "expense")
    tx.amount = 12.5
    assert tx_service.update("u1", tx).amount == 12.5
    tx_service.delete("u1", tx.id)
    assert tx_service.list_for_user("u1") == []


def test_find_generated_duplicates(tx_service, tx_dao):
    def add(desc, date, user="u1"):
        return tx_dao.create_transaction(user, Transaction(
            id=None, user_id=user, type="expense", amount=50.0,
            description=desc, date=date, category="Health",
        ))

    a = add("Gym (Recurring)", "2024-06-03")
    b = add("Gym (Recurring)", "2024-06-03")
    add("Gym (Recurring)", "2024-06-04")
    add("Gym", "2024-06-04")
    add("Gym", "2024-06-04")
    add("Gym (Recurring)", "2024-06-03", user="u2")

    assert tx_service.find_generated_duplicates("u1") == [
        {"date": "2024-06-03", "description": "Gym (Recurring)", "count": 2, "ids": [a.id, b.id]},
    ]
    assert tx_service.find_generated_duplicates("u2") == []
