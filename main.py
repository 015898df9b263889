from ovh_machine import driver_factory



def main():
    # Example usage of the driver factory
    flags = {
        "ovh-application-key": "EXAMPLEAPPKEY",
        "ovh-application-secret": "EXAMPLEAPPSECRET",
        "ovh-consumer-key": "EXAMPLECONSUMERKEY",
        "ovh-project": "acme",
        "ovh-region": "GRA1",
    }

    driver = driver_factory("ovh", "web-1", "/tmp/ovh-machine", flags)
    driver.pre_create_check()
    driver.create()

    print(f"Machine state: {driver.get_state()}")
    print(f"Docker URL: {driver.get_url()}")

if __name__ == "__main__":
    main()
