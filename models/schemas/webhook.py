from marshmallow import Schema, fields, EXCLUDE

USER_UPGRADED = "user.upgraded"


class PolkaDataSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    user_id = fields.UUID(required=False)


class PolkaEventSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    event = fields.String(required=True)
    data = fields.Nested(PolkaDataSchema, load_default=dict)
