# Document Management - Command Line Programs
# cedar-check, openfga-check and the docmgmt admin app
