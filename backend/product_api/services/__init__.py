# Services package init
"""
Product API Backend — Services Layer
=====================================

What:  Business logic between routes (HTTP) and the document store.
How:   ProductService turns request inputs into gateway calls and gateway
       results into response models. The gateway is handed in per call.

Service Inventory:
    - ProductGateway (abstract): store operations the API needs
    - MongoProductGateway: concrete gateway over a motor collection
    - ProductService: list/stats/get/create/update/delete and error folding
"""
