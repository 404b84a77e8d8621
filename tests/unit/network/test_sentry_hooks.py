from huis.network.http.server import scrub_two_factor_data, traces_sampler


def test_codes_and_secrets_are_filtered():
    event = {
        'request': {
            'data': {'code': '123456', 'secret': 'JBSWY3DPEHPK3PXP', 'other': 'kept'},
            'headers': {'Authorization': 'Bearer abc', 'User-Agent': 'pytest'},
        }
    }

    scrubbed = scrub_two_factor_data(event, hint={})

    assert scrubbed['request']['data'] == {'code': '[Filtered]', 'secret': '[Filtered]', 'other': 'kept'}
    assert scrubbed['request']['headers'] == {'Authorization': '[Filtered]', 'User-Agent': 'pytest'}


def test_events_without_request_pass_through():
    event = {'message': 'boom'}

    assert scrub_two_factor_data(event, hint={}) == {'message': 'boom'}


def test_healthchecks_are_not_traced():
    assert traces_sampler({'asgi_scope': {'path': '/healthcheck/api'}}) == 0
    assert traces_sampler({'asgi_scope': {'path': '/api/two-factor/verify'}}) > 0
