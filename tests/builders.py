"""Workflow builders shared by the test modules."""

from lattice.schemas.workflow import WorkflowDocument, WorkflowEdge, WorkflowNode


def node(node_id, node_type, **config):
    return WorkflowNode(id=node_id, type=node_type, label=node_id.title(), config=config)


def edge(source, target, edge_id=None):
    return WorkflowEdge(id=edge_id or f"{source}->{target}", source=source, target=target)


def chain(*node_ids):
    """Edges linking node ids in sequence."""
    return [edge(a, b) for a, b in zip(node_ids, node_ids[1:])]


def workflow(nodes, edges, name="Test Workflow", workflow_id="wf_test"):
    return WorkflowDocument(id=workflow_id, name=name, nodes=nodes, edges=edges)
