"""
Contracts (data models).

This folder defines the shapes exchanged with the external cart store and
returned by the insurance service:
- CartSnapshot / CartLineItem: the canonical, normalized cart view
- LineItemRef: what an add operation hands back
- ReconcileResult / InsurancePreview: service results

Both mock and real cart store clients use these contracts, so the
reconciliation logic never touches raw upstream payload fields.
"""
