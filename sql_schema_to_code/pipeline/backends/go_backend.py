"""
Go service backend.

Builds the binding sets for every artifact of the generated service and
renders them through the template engine. Per-table artifacts (domain model,
DTO, application service, interactor adapter, repository, REST handler) are
rendered once per table; the unified interface files, the REST route file and
the REST parameter file aggregate every table into one output.
"""

from __future__ import annotations

import logging
from pathlib import PurePosixPath

from ...utils import to_target_case
from ..analyzer.name_resolver import EntityNames, is_meta_column
from ..analyzer.type_mapper import TypeMapping
from ..schema_ast.nodes import Column, SchemaModel, Table
from .base import Artifact, ArtifactBackend

logger = logging.getLogger(__name__)

# Handler methods in the order they appear in each handler file
REST_HANDLER_TEMPLATES = (
    "rest-func-get-all",
    "rest-func-create",
    "rest-func-get-by-id",
    "rest-func-update",
    "rest-func-delete",
)


def field_name(column: Column) -> str:
    return to_target_case(column.name)


def non_meta_columns(table: Table) -> list[Column]:
    """Columns not supplied by the MetaField base entity, in declaration order."""
    return [column for column in table.columns if not is_meta_column(column.name)]


def import_statement(imports: list[str]) -> str:
    """Go import clause for a file whose only imports come from field types."""
    if not imports:
        return ""
    if len(imports) == 1:
        return f'\nimport "{imports[0]}"\n'
    lines = "".join(f'\t"{path}"\n' for path in imports)
    return f"\nimport (\n{lines})\n"


class GoBackend(ArtifactBackend):
    """Generates the Go source tree of a hexagonal CRUD service."""

    def __init__(self, *args, generation_command: str = "", **kwargs):
        super().__init__(*args, **kwargs)
        self.generation_command = generation_command

    @property
    def database_name(self) -> str:
        return self.module_name.replace("-", "_")

    def qualified_table_name(self, table: Table) -> str:
        if self.config.db_schema:
            return f"{self.config.db_schema}.{table.name}"
        return table.name

    def module_bindings(self) -> dict[str, str]:
        return {
            "module_name": self.module_name,
            "database_name": self.database_name,
            "go_version": self.config.go_version,
        }

    def entity_bindings(self, table: Table) -> dict[str, str]:
        """Names shared by every per-table template."""
        names = EntityNames.from_table(table.name)
        bindings = self.module_bindings()
        bindings.update(
            {
                "table_name": table.name,
                "qualified_table_name": self.qualified_table_name(table),
                "struct_name": names.struct_name,
                "entity_name": names.entity_file,
                "entity_var": names.entity_var,
                "plural_name": names.plural_name,
                "entity_plural": names.entity_plural,
                "service_interface": names.service_interface,
                "service_name": names.application_service,
                "adapter_name": names.adapter_name,
                "repo_name": names.repo_name,
            }
        )
        return bindings

    def generate(self, schema: SchemaModel) -> list[Artifact]:
        """
        Render every Go service artifact for a schema.

        Args:
            schema: The parsed schema model

        Returns:
            Artifacts in generation order: base files, domain models,
            application layer, interactor layer, repositories, REST layer
        """
        artifacts = self.generate_base_files(schema)

        for table in schema:
            artifacts.append(self.generate_domain_model(table))

        artifacts.append(self.generate_application_interfaces(schema))
        for table in schema:
            artifacts.append(self.generate_application_service(table))
        for table in schema:
            artifacts.append(self.generate_dto(table))

        artifacts.append(self.generate_interactor_interfaces(schema))
        for table in schema:
            artifacts.append(self.generate_interactor_adapter(table))

        for table in schema:
            artifacts.append(self.generate_repository(table))

        artifacts.extend(self.generate_rest_api(schema))

        logger.debug("Rendered %d Go service artifacts for %d tables", len(artifacts), len(schema))
        return artifacts

    # Base files

    def generate_base_files(self, schema: SchemaModel) -> list[Artifact]:
        module = self.module_bindings()
        readme = dict(module)
        readme["generation_command"] = self.generation_command
        readme["table_list"] = "".join(
            f"- `{table.name}` -> `{EntityNames.from_table(table.name).struct_name}`\n" for table in schema
        )

        return [
            Artifact(PurePosixPath("go.mod"), self.render("go-mod", module)),
            Artifact(
                PurePosixPath("cmd") / self.module_name / "main.go",
                self.render("main-go", self.main_bindings(schema)),
                language="go",
            ),
            Artifact(PurePosixPath("README.md"), self.render("readme", readme)),
            Artifact(
                PurePosixPath("internal/config/config.go"),
                self.render("config", module),
                language="go",
            ),
            Artifact(
                PurePosixPath("internal/repository/implementor/postgres/connection.go"),
                self.render("db-connection", module),
                language="go",
            ),
            Artifact(
                PurePosixPath("internal/domain/model/meta.go"),
                self.render("meta-field", module),
                language="go",
            ),
            Artifact(PurePosixPath("Dockerfile"), self.render("dockerfile", module)),
            Artifact(PurePosixPath("docker-compose.yml"), self.render("docker-compose", module)),
            Artifact(
                PurePosixPath("script/build.sh"),
                self.render("build-script", module),
                executable=True,
            ),
            Artifact(
                PurePosixPath("script/build-all.sh"),
                self.render("build-script-cross-platform", module),
                executable=True,
            ),
            Artifact(PurePosixPath("Makefile"), self.render("makefile", module)),
        ]

    def main_bindings(self, schema: SchemaModel) -> dict[str, str]:
        """Wiring of repositories, services and adapters in cmd/<module>/main.go."""
        packages = (
            "internal/application",
            "internal/interactor",
            "internal/interactor/rest",
            "internal/repository/implementor/postgres",
        )
        additional_imports = "".join(f'\n\t"{self.module_name}/{package}"' for package in packages)

        repository_init = "\n\t// Initialize repositories\n"
        service_init = "\n\t// Initialize application services\n"
        adapter_init = "\n\t// Initialize interactor adapters\n"
        service_parameters = ""
        endpoint_logging = ""

        for table in schema:
            names = EntityNames.from_table(table.name)
            prefix = names.entity_file
            repository_init += f"\t{prefix}Repo := postgres.New{names.repo_name}(db)\n"
            service_init += (
                f"\t{prefix}AppService := application.New{names.application_service}(ctx, {prefix}Repo)\n"
            )
            adapter_init += f"\t{prefix}Adapter := interactor.New{names.adapter_name}(ctx, {prefix}AppService)\n"
            service_parameters += f", {prefix}Adapter"
            endpoint_logging += (
                f'\n\tlog.Println("  GET/POST /{names.entity_plural} - {names.struct_name} management")'
                f'\n\tlog.Println("  GET/PUT/DELETE /{names.entity_plural}/:id - {names.struct_name} operations")'
            )

        bindings = self.module_bindings()
        bindings.update(
            {
                "additional_imports": additional_imports,
                "repository_initialization": repository_init,
                "application_service_initialization": service_init,
                "adapter_initialization": adapter_init,
                "service_parameters": service_parameters,
                "endpoint_logging": endpoint_logging,
            }
        )
        return bindings

    # Domain layer

    def mapping_for(self, column: Column) -> TypeMapping:
        if column.mapping is not None:
            return column.mapping
        return self.type_mapper.map_forward(column.source_type, column.name, column.is_primary_key, column.is_nullable)

    def field_imports(self, columns: list[Column]) -> list[str]:
        """Sorted Go import paths required by the mapped field types."""
        imports = set()
        for column in columns:
            imports.update(self.mapping_for(column).imports)
        return sorted(imports)

    def model_fields(self, table: Table) -> str:
        """Struct fields of the domain model; Meta Contract columns come from MetaField."""
        fields = ""
        for column in non_meta_columns(table):
            mapping = self.mapping_for(column)
            fields += f"\t{field_name(column)} {mapping.target_type} {mapping.struct_tags}\n"
        return fields

    def generate_domain_model(self, table: Table) -> Artifact:
        bindings = self.entity_bindings(table)
        bindings["fields"] = self.model_fields(table)
        bindings["import_statement"] = import_statement(self.field_imports(non_meta_columns(table)))
        return Artifact(
            PurePosixPath("internal/domain/model") / f"{table.name.lower()}.go",
            self.render("domain-model", bindings),
            language="go",
        )

    # Application layer

    def dto_fields(self, table: Table) -> str:
        """DTO struct fields: ID first, then every non-meta column."""
        fields = '\tID int64 `json:"id,omitempty"`\n'
        for column in non_meta_columns(table):
            target_type = self.mapping_for(column).target_type
            fields += f'\t{field_name(column)} {target_type} `json:"{column.name.lower()},omitempty"`\n'
        return fields

    def marshal_fields(self, table: Table) -> str:
        """Field assignments copying a DTO into its domain model."""
        return "".join(f"\n\t\t{field_name(column)}: d.{field_name(column)}," for column in non_meta_columns(table))

    def unmarshal_fields(self, table: Table) -> str:
        """Field assignments copying a domain model into its DTO."""
        return "".join(
            f"\n\td.{field_name(column)} = domainModel.{field_name(column)}" for column in non_meta_columns(table)
        )

    def generate_dto(self, table: Table) -> Artifact:
        names = EntityNames.from_table(table.name)
        bindings = self.entity_bindings(table)
        bindings.update(
            {
                "fields": self.dto_fields(table),
                "marshal_fields": self.marshal_fields(table),
                "unmarshal_fields": self.unmarshal_fields(table),
                "import_statement": "".join(f'\n\t"{path}"' for path in self.field_imports(non_meta_columns(table))),
            }
        )
        return Artifact(
            PurePosixPath("internal/application/dto") / f"{names.entity_file}.go",
            self.render("dto", bindings),
            language="go",
        )

    def generate_application_interfaces(self, schema: SchemaModel) -> Artifact:
        interfaces = "".join(
            self.render("application-interface-content", self.entity_bindings(table)) for table in schema
        )
        bindings = self.module_bindings()
        bindings["interfaces"] = interfaces
        return Artifact(
            PurePosixPath("internal/application/adapter.go"),
            self.render("application-interfaces", bindings),
            language="go",
        )

    def generate_application_service(self, table: Table) -> Artifact:
        names = EntityNames.from_table(table.name)
        return Artifact(
            PurePosixPath("internal/application") / f"{names.entity_file}_service.go",
            self.render("application-service", self.entity_bindings(table)),
            language="go",
        )

    # Interactor layer

    def generate_interactor_interfaces(self, schema: SchemaModel) -> Artifact:
        interfaces = "".join(
            self.render("interactor-interface-content", self.entity_bindings(table)) for table in schema
        )
        bindings = self.module_bindings()
        bindings["interfaces"] = interfaces
        return Artifact(
            PurePosixPath("internal/interactor/adapter.go"),
            self.render("interactor-interfaces", bindings),
            language="go",
        )

    def generate_interactor_adapter(self, table: Table) -> Artifact:
        names = EntityNames.from_table(table.name)
        return Artifact(
            PurePosixPath("internal/interactor") / f"{names.entity_file}_adapter.go",
            self.render("interactor-adapter", self.entity_bindings(table)),
            language="go",
        )

    # Repository layer

    def generate_repository(self, table: Table) -> Artifact:
        return Artifact(
            PurePosixPath("internal/repository/implementor/postgres") / f"{table.name.lower()}_repo.go",
            self.render("postgres-repository", self.entity_bindings(table)),
            language="go",
        )

    # REST layer

    def generate_rest_api(self, schema: SchemaModel) -> list[Artifact]:
        rest_dir = PurePosixPath("internal/interactor/rest")
        artifacts = [
            Artifact(rest_dir / "rest.go", self.render("rest-api-main", self.rest_main_bindings(schema)), language="go"),
            Artifact(rest_dir / "query.go", self.render("rest-query", self.module_bindings()), language="go"),
            Artifact(rest_dir / "rest_parameter.go", self.generate_rest_parameters(schema), language="go"),
        ]
        for table in schema:
            artifacts.append(
                Artifact(
                    rest_dir / f"{table.name.lower()}_handler.go",
                    self.generate_rest_handler(table),
                    language="go",
                )
            )
        return artifacts

    def rest_main_bindings(self, schema: SchemaModel) -> dict[str, str]:
        """Service fields, constructor parameters and routes of rest.go."""
        service_fields = ""
        service_params = ""
        service_init = ""
        route_registrations = ""

        for table in schema:
            names = EntityNames.from_table(table.name)
            service_field = f"{names.entity_file}Service"
            interface = f"interactor.{names.service_interface}"
            handler = f"{names.entity_file}Handler"
            path = f"/{names.entity_plural}"

            service_fields += f"\t{service_field} {interface}\n"
            service_params += f", {service_field} {interface}"
            service_init += f"\t\t{service_field}: {service_field},\n"
            route_registrations += (
                f"\n\t// {names.struct_name} routes\n"
                f"\t{handler} := New{names.struct_name}Handler(r.ctx, r.{service_field})\n"
                f'\trouter.GET("{path}", {handler}.GetAll{names.plural_name})\n'
                f'\trouter.POST("{path}", {handler}.Create{names.struct_name})\n'
                f'\trouter.GET("{path}/:id", {handler}.Get{names.struct_name}ByID)\n'
                f'\trouter.PUT("{path}/:id", {handler}.Update{names.struct_name})\n'
                f'\trouter.DELETE("{path}/:id", {handler}.Delete{names.struct_name})\n'
            )

        bindings = self.module_bindings()
        bindings.update(
            {
                "service_fields": service_fields,
                "service_params": service_params,
                "service_init": service_init,
                "route_registrations": route_registrations,
                "interactor_import": f'\n\n\t"{self.module_name}/internal/interactor"' if len(schema) else "",
            }
        )
        return bindings

    def generate_rest_handler(self, table: Table) -> str:
        bindings = self.entity_bindings(table)
        handler = self.render("rest-handler-header", bindings)
        for template_name in REST_HANDLER_TEMPLATES:
            handler += self.render(template_name, bindings)
        return handler

    def filter_fields(self, table: Table) -> str:
        """Filter descriptors: id first, then every non-meta column."""
        fields = '\n\t\t{Omitempty: true, DBKey: "id", Kind: reflect.Int64, QueryKey: "id"},'
        for column in non_meta_columns(table):
            kind = self.type_mapper.reflect_kind(self.mapping_for(column).target_type)
            fields += f'\n\t\t{{Omitempty: true, DBKey: "{column.name}", Kind: {kind}, QueryKey: "{column.name}"}},'
        return fields

    def sorting_fields(self, table: Table) -> str:
        """Sorting descriptors: id first, then every non-meta column."""
        fields = '\n\t\t{DBKey: "id", QueryKey: "id", Kind: reflect.Int64},'
        for column in non_meta_columns(table):
            kind = self.type_mapper.reflect_kind(self.mapping_for(column).target_type)
            fields += f'\n\t\t{{DBKey: "{column.name}", QueryKey: "{column.name}", Kind: {kind}}},'
        return fields

    def generate_rest_parameters(self, schema: SchemaModel) -> str:
        """One descriptor block per table inside a single var declaration."""
        parameters = ""
        for table in schema:
            bindings = self.entity_bindings(table)
            bindings["filter_fields"] = self.filter_fields(table)
            bindings["sorting_fields"] = self.sorting_fields(table)
            parameters += self.render("rest-parameter", bindings)
        return self.render("rest-parameter-header", {"parameters": parameters})
