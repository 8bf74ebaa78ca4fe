"""Activity logging: change capture, attribution, and the audit write path.

Import from the submodules directly; this package stays import-light so
the generic CRUD layer can depend on the record store without cycles.
"""
