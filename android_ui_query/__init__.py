"""android-ui-query command line package"""
