"""
Clients for the remote services the IPN handler talks to: the PayPal
verification postback and the Mailchimp Marketing API.
"""
