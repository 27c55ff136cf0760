from reaction_game import db

DEFAULT_NAMESPACE = 'default'


class StoredValue(db.Model):
    """One persisted string value, scoped by client namespace."""
    __tablename__ = 'stored_value'
    __table_args__ = (
        db.UniqueConstraint('namespace', 'key', name='uq_stored_value_namespace_key'),
    )
    id = db.Column(db.Integer, primary_key=True)
    namespace = db.Column(db.String(64), nullable=False, default=DEFAULT_NAMESPACE, index=True)
    key = db.Column(db.String(128), nullable=False)
    value = db.Column(db.Text, nullable=False)
