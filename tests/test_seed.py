from catalog import models
from catalog.auth import verify_password
from catalog.seed import DEFAULT_CATEGORIES, SAMPLE_PRODUCTS, seed_database


def test_seed_is_idempotent(db_session, settings):
    seed_database(db_session, settings)
    seed_database(db_session, settings)

    users = db_session.query(models.User).all()
    assert len(users) == 1
    assert users[0].is_admin
    assert verify_password(settings.admin_password, users[0].password_hash)

    assert db_session.query(models.Category).count() == len(DEFAULT_CATEGORIES)
    products = db_session.query(models.Product).all()
    assert len(products) == len(SAMPLE_PRODUCTS)
    for product in products:
        assert product.category is not None
        assert [img.is_primary for img in product.images] == [True]


def test_seed_keeps_existing_users(db_session, settings, regular_user):
    seed_database(db_session, settings)
    assert [u.username for u in db_session.query(models.User)] == ["shopper"]
