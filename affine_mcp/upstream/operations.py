"""
The fixed set of GraphQL operations issued against the AFFiNE API.

Only variables are substituted at call time; the documents never change.
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Operation:
    """A named GraphQL document"""

    name: str
    document: str

    def __str__(self) -> str:
        return self.name


IDENTIFYING_VARIABLES: tuple[str, ...] = ("workspaceId", "docId", "id", "key")


def describe(operation: Operation, variables: dict[str, Any] | None = None) -> str:
    """Operation name with the ids it addresses, e.g. `getDoc(workspaceId=w1, docId=d1)`"""
    variables = variables or {}
    nested: Any = variables.get("input")
    scope: dict[str, Any] = (nested if isinstance(nested, dict) else {}) | variables
    ids: list[str] = [f"{name}={scope[name]}" for name in IDENTIFYING_VARIABLES if scope.get(name) is not None]
    return f"{operation.name}({', '.join(ids)})" if ids else operation.name


_USER_FIELDS = "name email"

_DOC_FIELDS = f"""
    id
    title
    mode
    public
    summary
    createdAt
    updatedAt
    createdBy {{ {_USER_FIELDS} }}
    lastUpdatedBy {{ {_USER_FIELDS} }}
    permissions {{ Doc_Read Doc_Update Doc_Delete }}
"""

_COMMENT_FIELDS = f"""
    id
    content
    createdAt
    updatedAt
    user {{ name }}
"""

LIST_WORKSPACES = Operation(
    name="listWorkspaces",
    document="""
query listWorkspaces {
  workspaces {
    id
    name
    public
    createdAt
  }
}
""",
)

GET_WORKSPACE = Operation(
    name="getWorkspace",
    document=f"""
query getWorkspace($workspaceId: String!) {{
  workspace(id: $workspaceId) {{
    id
    name
    public
    createdAt
    memberCount
    owner {{ {_USER_FIELDS} }}
    quota {{
      name
      storageQuota
      usedStorageQuota
      memberLimit
      memberCount
    }}
  }}
}}
""",
)

LIST_DOCS = Operation(
    name="listDocs",
    document=f"""
query listDocs($workspaceId: String!, $first: Int!, $after: String) {{
  workspace(id: $workspaceId) {{
    docs(pagination: {{ first: $first, after: $after }}) {{
      totalCount
      pageInfo {{ hasNextPage endCursor }}
      edges {{
        node {{ {_DOC_FIELDS} }}
      }}
    }}
  }}
}}
""",
)

GET_DOC = Operation(
    name="getDoc",
    document=f"""
query getDoc($workspaceId: String!, $docId: String!) {{
  workspace(id: $workspaceId) {{
    doc(docId: $docId) {{ {_DOC_FIELDS} }}
  }}
}}
""",
)

SEARCH_DOCS = Operation(
    name="searchDocs",
    document="""
query searchDocs($workspaceId: String!, $keyword: String!, $limit: Int!) {
  workspace(id: $workspaceId) {
    searchDocs(input: { keyword: $keyword, limit: $limit }) {
      docId
      title
      highlight
      createdAt
      updatedAt
    }
  }
}
""",
)

PUBLISH_DOC = Operation(
    name="publishDoc",
    document=f"""
mutation publishDoc($workspaceId: String!, $docId: String!, $mode: PublicDocMode) {{
  publishDoc(workspaceId: $workspaceId, docId: $docId, mode: $mode) {{ {_DOC_FIELDS} }}
}}
""",
)

REVOKE_PUBLIC_DOC = Operation(
    name="revokePublicDoc",
    document=f"""
mutation revokePublicDoc($workspaceId: String!, $docId: String!) {{
  revokePublicDoc(workspaceId: $workspaceId, docId: $docId) {{ {_DOC_FIELDS} }}
}}
""",
)

LIST_COMMENTS = Operation(
    name="listComments",
    document=f"""
query listComments($workspaceId: String!, $docId: String!, $first: Int!) {{
  workspace(id: $workspaceId) {{
    comments(docId: $docId, pagination: {{ first: $first }}) {{
      totalCount
      pageInfo {{ hasNextPage endCursor }}
      edges {{
        node {{
          {_COMMENT_FIELDS}
          resolved
          replies {{ {_COMMENT_FIELDS} }}
        }}
      }}
    }}
  }}
}}
""",
)

CREATE_COMMENT = Operation(
    name="createComment",
    document=f"""
mutation createComment($input: CommentCreateInput!) {{
  createComment(input: $input) {{
    {_COMMENT_FIELDS}
    resolved
    replies {{ {_COMMENT_FIELDS} }}
  }}
}}
""",
)

RESOLVE_COMMENT = Operation(
    name="resolveComment",
    document="""
mutation resolveComment($input: CommentResolveInput!) {
  resolveComment(input: $input)
}
""",
)

DELETE_COMMENT = Operation(
    name="deleteComment",
    document="""
mutation deleteComment($id: String!) {
  deleteComment(id: $id)
}
""",
)

LIST_HISTORIES = Operation(
    name="listHistories",
    document=f"""
query listHistories($workspaceId: String!, $docId: String!, $take: Int, $before: DateTime) {{
  workspace(id: $workspaceId) {{
    histories(guid: $docId, take: $take, before: $before) {{
      id
      timestamp
      workspaceId
      editor {{ name }}
    }}
  }}
}}
""",
)

LIST_BLOBS = Operation(
    name="listBlobs",
    document="""
query listBlobs($workspaceId: String!) {
  workspace(id: $workspaceId) {
    blobsSize
    blobs {
      key
      mime
      size
      createdAt
    }
  }
}
""",
)

DELETE_BLOB = Operation(
    name="deleteBlob",
    document="""
mutation deleteBlob($workspaceId: String!, $key: String!, $permanently: Boolean!) {
  deleteBlob(workspaceId: $workspaceId, key: $key, permanently: $permanently)
}
""",
)
