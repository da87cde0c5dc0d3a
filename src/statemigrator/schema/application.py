"""
Schema descriptors for the directory ``application`` resource.

Version 0 is the legacy layout. Version 1 turns ``group_membership_claims``
into a set of strings and renames ``public_client`` to
``fallback_public_client_enabled``. Everything else is carried over unchanged.
"""

from statemigrator.schema.descriptor import (
    Cardinality,
    FieldDescriptor,
    SchemaDescriptor,
    ValueKind,
    conflicts_with,
    exactly_one_of,
)

OPTIONAL = Cardinality.OPTIONAL
REQUIRED = Cardinality.REQUIRED
COMPUTED = Cardinality.COMPUTED
OPTIONAL_COMPUTED = Cardinality.OPTIONAL_COMPUTED

GROUP_MEMBERSHIP_CLAIMS = ("All", "None", "ApplicationGroup", "DirectoryRole", "SecurityGroup")


def _string(name, cardinality=OPTIONAL, **kwargs):
    return FieldDescriptor(name=name, kind=ValueKind.STRING, cardinality=cardinality, **kwargs)


def _bool(name, cardinality=OPTIONAL, **kwargs):
    return FieldDescriptor(name=name, kind=ValueKind.BOOL, cardinality=cardinality, **kwargs)


def _strings(name, kind=ValueKind.SET, cardinality=OPTIONAL, **kwargs):
    return FieldDescriptor(name=name, kind=kind, cardinality=cardinality, elem=ValueKind.STRING, **kwargs)


def _blocks(name, kind, cardinality, *fields, **kwargs):
    return FieldDescriptor(
        name=name,
        kind=kind,
        cardinality=cardinality,
        elem=SchemaDescriptor(fields=fields),
        **kwargs,
    )


def _optional_claim(name):
    return _blocks(
        name, ValueKind.LIST, OPTIONAL,
        _string("name", REQUIRED),
        _string("source"),
        _bool("essential", default=False),
        _strings("additional_properties", kind=ValueKind.LIST),
    )


APPLICATION_SCHEMA_V0 = SchemaDescriptor(
    version=0,
    fields=(
        _string(
            "display_name", OPTIONAL_COMPUTED,
            constraints=(exactly_one_of("display_name", "name"),),
        ),
        _string(
            "name", OPTIONAL_COMPUTED,
            deprecated="This property has been renamed to `display_name` and will be removed in version 2.0",
            constraints=(exactly_one_of("display_name", "name"),),
        ),
        _blocks(
            "api", ValueKind.LIST, OPTIONAL_COMPUTED,
            _blocks(
                "oauth2_permission_scope", ValueKind.SET, OPTIONAL,
                _string("id", REQUIRED),
                _string("admin_consent_description"),
                _string("admin_consent_display_name"),
                _bool("enabled"),
                _string("type", default="User"),
                _string("user_consent_description"),
                _string("user_consent_display_name"),
                _string("value"),
            ),
            max_items=1,
        ),
        _blocks(
            "app_role", ValueKind.SET, OPTIONAL_COMPUTED,
            _string("id", COMPUTED),
            _strings("allowed_member_types", cardinality=REQUIRED, min_items=1),
            _string("description", REQUIRED),
            _string("display_name", REQUIRED),
            _bool("enabled", default=True),
            _bool(
                "is_enabled", default=True,
                deprecated="This attribute has been renamed to `enabled` and will be removed in version 2.0",
            ),
            _string("value", OPTIONAL_COMPUTED),
        ),
        _bool(
            "available_to_other_tenants", OPTIONAL_COMPUTED,
            deprecated="This attribute will be replaced by a new property `sign_in_audience` in version 2.0",
            constraints=(conflicts_with("sign_in_audience"),),
        ),
        _bool(
            "fallback_public_client_enabled", OPTIONAL_COMPUTED,
            constraints=(conflicts_with("public_client"),),
        ),
        _string(
            "group_membership_claims",
            deprecated="This attribute will become a list in version 2.0",
        ),
        _string(
            "homepage", OPTIONAL_COMPUTED,
            deprecated="This attribute will be replaced by `homepage_url` in the `web` block in version 2.0",
            constraints=(conflicts_with("web.0.homepage_url"),),
        ),
        _strings("identifier_uris", kind=ValueKind.LIST, cardinality=OPTIONAL_COMPUTED),
        _string(
            "logout_url", OPTIONAL_COMPUTED,
            deprecated="This attribute will be moved into the `web` block in version 2.0",
            constraints=(conflicts_with("web.0.logout_url"),),
        ),
        _bool(
            "oauth2_allow_implicit_flow", OPTIONAL_COMPUTED,
            deprecated=(
                "This attribute will be moved to the `implicit_grant` block and renamed to "
                "`access_token_issuance_enabled` in version 2.0"
            ),
            constraints=(conflicts_with("web.0.implicit_grant.0.access_token_issuance_enabled"),),
        ),
        _blocks(
            "oauth2_permissions", ValueKind.SET, OPTIONAL_COMPUTED,
            _string("id", COMPUTED),
            _string("admin_consent_description", OPTIONAL_COMPUTED),
            _string("admin_consent_display_name", OPTIONAL_COMPUTED),
            _bool("is_enabled", OPTIONAL_COMPUTED),
            _string("type", OPTIONAL_COMPUTED),
            _string("user_consent_description", OPTIONAL_COMPUTED),
            _string("user_consent_display_name", OPTIONAL_COMPUTED),
            _string("value", OPTIONAL_COMPUTED),
            deprecated=(
                "The `oauth2_permissions` block has been renamed to `oauth2_permission_scope` "
                "and moved to the `api` block"
            ),
        ),
        _blocks(
            "optional_claims", ValueKind.LIST, OPTIONAL,
            _optional_claim("access_token"),
            _optional_claim("id_token"),
            max_items=1,
        ),
        _strings("owners", cardinality=OPTIONAL_COMPUTED),
        _bool(
            "public_client", OPTIONAL_COMPUTED,
            deprecated="This legacy attribute will be renamed to `fallback_public_client_enabled` in version 2.0",
            constraints=(conflicts_with("fallback_public_client_enabled"),),
        ),
        _strings(
            "reply_urls", cardinality=OPTIONAL_COMPUTED,
            deprecated="This attribute will be replaced by `redirect_uris` in the `web` block in version 2.0",
            constraints=(conflicts_with("web.0.redirect_uris"),),
        ),
        _blocks(
            "required_resource_access", ValueKind.SET, OPTIONAL,
            _string("resource_app_id", REQUIRED),
            _blocks(
                "resource_access", ValueKind.LIST, REQUIRED,
                _string("id", REQUIRED),
                _string("type", REQUIRED),
            ),
        ),
        _string(
            "sign_in_audience", OPTIONAL_COMPUTED,
            constraints=(conflicts_with("available_to_other_tenants"),),
        ),
        _string(
            "type", default="webapp/api",
            deprecated="This legacy property is deprecated and will be removed in version 2.0",
        ),
        _blocks(
            "web", ValueKind.LIST, OPTIONAL_COMPUTED,
            _string("homepage_url", constraints=(conflicts_with("homepage"),)),
            _string("logout_url", constraints=(conflicts_with("logout_url"),)),
            _strings("redirect_uris", constraints=(conflicts_with("reply_urls"),)),
            _blocks(
                "implicit_grant", ValueKind.LIST, OPTIONAL,
                _bool(
                    "access_token_issuance_enabled",
                    constraints=(conflicts_with("oauth2_allow_implicit_flow"),),
                ),
                max_items=1,
            ),
            max_items=1,
        ),
        _string("application_id", COMPUTED),
        _string("object_id", COMPUTED),
        _bool("prevent_duplicate_names", default=False),
    ),
)


APPLICATION_SCHEMA_V1 = APPLICATION_SCHEMA_V0.evolve(
    1,
    replace=(
        _bool("fallback_public_client_enabled", OPTIONAL_COMPUTED),
        _strings("group_membership_claims"),
    ),
    remove=("public_client",),
)


__all__ = [
    "APPLICATION_SCHEMA_V0",
    "APPLICATION_SCHEMA_V1",
    "GROUP_MEMBERSHIP_CLAIMS",
]
