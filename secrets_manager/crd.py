# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Secrets Manager contributors

"""CustomResourceDefinition bootstrap for SecretDefinition."""

from kubernetes import client
from kubernetes.client.rest import ApiException

from sm_logging import Logger

from .errors import SecretsManagerError
from .informer import DEFAULT_GROUP, DEFAULT_VERSION, PLURAL

KIND = "SecretDefinition"
SINGULAR = "secretdefinition"
SHORT_NAMES = ["secretdef", "secretdefs"]


def crd_name(group: str = DEFAULT_GROUP) -> str:
    return f"{PLURAL}.{group}"


def build_crd(group: str = DEFAULT_GROUP, version: str = DEFAULT_VERSION) -> client.V1CustomResourceDefinition:
    """Build the SecretDefinition CustomResourceDefinition."""
    datasource = client.V1JSONSchemaProps(
        type="object",
        required=["path", "key"],
        properties={
            "path": client.V1JSONSchemaProps(type="string"),
            "key": client.V1JSONSchemaProps(type="string"),
            "encoding": client.V1JSONSchemaProps(type="string"),
        },
    )
    spec = client.V1JSONSchemaProps(
        type="object",
        required=["name"],
        properties={
            "name": client.V1JSONSchemaProps(type="string"),
            "type": client.V1JSONSchemaProps(type="string"),
            "namespaces": client.V1JSONSchemaProps(
                type="array", items=client.V1JSONSchemaProps(type="string")
            ),
            "data": client.V1JSONSchemaProps(type="object", additional_properties=datasource),
        },
    )
    schema = client.V1JSONSchemaProps(
        type="object",
        properties={
            "spec": spec,
            "status": client.V1JSONSchemaProps(
                type="object",
                properties={"synced": client.V1JSONSchemaProps(type="boolean")},
            ),
        },
    )

    return client.V1CustomResourceDefinition(
        api_version="apiextensions.k8s.io/v1",
        kind="CustomResourceDefinition",
        metadata=client.V1ObjectMeta(name=crd_name(group)),
        spec=client.V1CustomResourceDefinitionSpec(
            group=group,
            scope="Namespaced",
            names=client.V1CustomResourceDefinitionNames(
                plural=PLURAL,
                singular=SINGULAR,
                kind=KIND,
                short_names=SHORT_NAMES,
            ),
            versions=[
                client.V1CustomResourceDefinitionVersion(
                    name=version,
                    served=True,
                    storage=True,
                    schema=client.V1CustomResourceValidation(open_apiv3_schema=schema),
                    subresources=client.V1CustomResourceSubresources(status={}),
                )
            ],
        ),
    )


def create_crd(
    apiextensions_api: client.ApiextensionsV1Api,
    logger: Logger,
    group: str = DEFAULT_GROUP,
    version: str = DEFAULT_VERSION,
) -> None:
    """Register the SecretDefinition CRD; an existing CRD is left untouched.

    Raises:
        SecretsManagerError: If the API rejects the CRD for any other reason
    """
    name = crd_name(group)
    try:
        apiextensions_api.create_custom_resource_definition(body=build_crd(group, version))
    except ApiException as e:
        if e.status == 409:
            logger.info("CustomResourceDefinition already exists", crd=name)
            return
        raise SecretsManagerError(f"Failed to create CustomResourceDefinition {name}: {e.reason}") from e
    logger.info("CustomResourceDefinition created", crd=name)
