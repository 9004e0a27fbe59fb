"""A small OSM-style FeatureCollection around Sölden used across tests."""


def feature_collection():
    return {
        'type': 'FeatureCollection',
        'features': [
            {
                'type': 'Feature', 'id': 'way/500',
                'properties': {'landuse': 'winter_sports', 'name': 'Sölden',
                               'website': 'https://www.soelden.com'},
                'geometry': {'type': 'Polygon', 'coordinates': [[
                    [10.95, 46.88], [11.05, 46.88], [11.05, 46.95],
                    [10.95, 46.95], [10.95, 46.88]]]},
            },
            {
                'type': 'Feature', 'id': 'way/101',
                'properties': {'piste:type': 'downhill', 'piste:difficulty': 'easy',
                               'ref': '3', 'name': 'Giggijoch'},
                'geometry': {'type': 'LineString',
                             'coordinates': [[11.0, 46.90], [11.0, 46.91]]},
            },
            {
                'type': 'Feature', 'id': 'way/102',
                'properties': {'piste:type': 'downhill', 'piste:difficulty': 'easy',
                               'ref': '3', 'name': 'Giggijoch'},
                'geometry': {'type': 'LineString',
                             'coordinates': [[11.0, 46.91], [11.0, 46.92]]},
            },
            {
                'type': 'Feature', 'id': 'way/201',
                'properties': {'aerialway': 'chair_lift', 'name': 'Silberbrunnbahn',
                               'aerialway:capacity': '2400'},
                'geometry': {'type': 'LineString',
                             'coordinates': [[11.02, 46.90], [11.02, 46.92]]},
            },
            {
                'type': 'Feature', 'id': 'node/301',
                'properties': {'natural': 'peak', 'name': 'Gaislachkogl', 'ele': '3058'},
                'geometry': {'type': 'Point', 'coordinates': [10.96, 46.94]},
            },
            {
                'type': 'Feature', 'id': 'node/401',
                'properties': {'amenity': 'restaurant', 'name': 'Ice Q'},
                'geometry': {'type': 'Point', 'coordinates': [10.97, 46.93]},
            },
            {
                'type': 'Feature', 'id': 'node/999',
                'properties': {'piste:type': 'downhill'},
                'geometry': {'type': 'Point', 'coordinates': [11.0, 46.9]},
            },
            {
                'type': 'Feature', 'id': 'way/777',
                'properties': {'highway': 'track'},
                'geometry': {'type': 'LineString',
                             'coordinates': [[11.0, 46.9], [11.1, 46.9]]},
            },
        ],
    }
